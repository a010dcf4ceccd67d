"""Subject management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.common import MessageResponse
from app.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from app.services.subject import SubjectService

router = APIRouter()


@router.post("", response_model=SubjectResponse)
def create_subject(
    request: SubjectCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Create a subject with its coefficient and grading scale."""
    service = SubjectService(db)
    return service.create_subject(context.school_id, request)


@router.get("", response_model=list[SubjectResponse])
def list_subjects(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    class_id: int | None = None,
):
    """List subjects, optionally of one class."""
    service = SubjectService(db)
    return service.list_subjects(context.school_id, class_id)


@router.get("/{subject_id}", response_model=SubjectResponse)
def get_subject(
    subject_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a subject by ID."""
    service = SubjectService(db)
    return service.get_subject(context.school_id, subject_id)


@router.patch("/{subject_id}", response_model=SubjectResponse)
def update_subject(
    subject_id: int,
    request: SubjectUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Update a subject.

    Changing max_score or coefficient changes how existing grades are
    averaged on the next results computation.
    """
    service = SubjectService(db)
    return service.update_subject(context.school_id, subject_id, request)


@router.delete("/{subject_id}", response_model=MessageResponse)
def delete_subject(
    subject_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a subject and its grades."""
    service = SubjectService(db)
    service.delete_subject(context.school_id, subject_id)
    return MessageResponse(message="Subject deleted successfully")
