"""Class management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.common import MessageResponse
from app.schemas.school_class import SchoolClassCreate, SchoolClassResponse, SchoolClassUpdate
from app.services.school_class import ClassService

router = APIRouter()


@router.post("", response_model=SchoolClassResponse)
def create_class(
    request: SchoolClassCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a new class."""
    service = ClassService(db)
    return service.create_class(context.school_id, request)


@router.get("", response_model=list[SchoolClassResponse])
def list_classes(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    academic_year: str | None = None,
):
    """List classes of the school."""
    service = ClassService(db)
    return service.list_classes(context.school_id, academic_year)


@router.get("/{class_id}", response_model=SchoolClassResponse)
def get_class(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a class by ID."""
    service = ClassService(db)
    return service.get_class_response(context.school_id, class_id)


@router.patch("/{class_id}", response_model=SchoolClassResponse)
def update_class(
    class_id: int,
    request: SchoolClassUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a class."""
    service = ClassService(db)
    return service.update_class(context.school_id, class_id, request)


@router.delete("/{class_id}", response_model=MessageResponse)
def delete_class(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a class with its students, subjects, exams and grades."""
    service = ClassService(db)
    service.delete_class(context.school_id, class_id)
    return MessageResponse(message="Class deleted successfully")
