"""Exam management endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.common import MessageResponse
from app.schemas.exam import ExamCreate, ExamFilter, ExamResponse, ExamUpdate
from app.services.exam import ExamService

router = APIRouter()


@router.post("", response_model=ExamResponse)
def create_exam(
    request: ExamCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Create an exam for a class.

    Exams whose title or type contains "composition" produce composition
    bulletins. New exams are unpublished.
    """
    service = ExamService(db)
    return service.create_exam(context.school, request)


@router.get("", response_model=list[ExamResponse])
def list_exams(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    class_id: int | None = None,
    semester: str | None = None,
    is_published: bool | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    """List exams with filtering."""
    service = ExamService(db)
    filters = ExamFilter(
        class_id=class_id,
        semester=semester,
        is_published=is_published,
        date_from=date_from,
        date_to=date_to,
    )
    return service.list_exams(context.school, filters)


@router.get("/{exam_id}", response_model=ExamResponse)
def get_exam(
    exam_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Get an exam by ID."""
    service = ExamService(db)
    return ExamResponse.model_validate(service.get_exam(context.school_id, exam_id))


@router.patch("/{exam_id}", response_model=ExamResponse)
def update_exam(
    exam_id: int,
    request: ExamUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Update an exam."""
    service = ExamService(db)
    return service.update_exam(context.school, exam_id, request)


@router.post("/{exam_id}/publish", response_model=ExamResponse)
def publish_exam(
    exam_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Publish exam results to students and parents."""
    service = ExamService(db)
    return service.set_published(context.school_id, exam_id, True)


@router.post("/{exam_id}/unpublish", response_model=ExamResponse)
def unpublish_exam(
    exam_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Withdraw published exam results."""
    service = ExamService(db)
    return service.set_published(context.school_id, exam_id, False)


@router.delete("/{exam_id}", response_model=MessageResponse)
def delete_exam(
    exam_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete an exam and its grades."""
    service = ExamService(db)
    service.delete_exam(context.school_id, exam_id)
    return MessageResponse(message="Exam deleted successfully")
