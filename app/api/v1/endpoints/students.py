"""Student management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.common import MessageResponse
from app.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)
from app.services.student import StudentService

router = APIRouter()


@router.post("", response_model=StudentResponse)
def create_student(
    request: StudentCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create a new student.

    When no matricule is given and the school generates matricules, the next
    one is assigned (prefix + sequence, e.g. ELEVE007).
    """
    service = StudentService(db)
    return service.create_student(context.school, request)


@router.get("", response_model=PaginatedStudentResponse)
def list_students(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    class_id: int | None = None,
    search: str | None = None,
):
    """List students with filtering and pagination."""
    service = StudentService(db)
    filters = StudentFilter(class_id=class_id, search=search)
    return service.list_students(context.school_id, filters, page, page_size)


@router.get("/next-matricule")
def get_next_matricule(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Preview the matricule the next registered student would receive."""
    service = StudentService(db)
    return {"matricule": service.next_matricule(context.school)}


@router.get("/{student_id}", response_model=StudentResponse)
def get_student(
    student_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a student by ID."""
    service = StudentService(db)
    student = service.get_student(context.school_id, student_id)
    return StudentResponse.model_validate(student)


@router.patch("/{student_id}", response_model=StudentResponse)
def update_student(
    student_id: int,
    request: StudentUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a student."""
    service = StudentService(db)
    return service.update_student(context.school_id, student_id, request)


@router.delete("/{student_id}", response_model=MessageResponse)
def delete_student(
    student_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a student."""
    service = StudentService(db)
    service.delete_student(context.school_id, student_id)
    return MessageResponse(message="Student deleted successfully")
