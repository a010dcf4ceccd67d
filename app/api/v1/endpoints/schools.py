"""School registration and settings endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.school import SchoolCreate, SchoolResponse, SchoolUpdate
from app.services.school import SchoolService

router = APIRouter()


@router.post("", response_model=SchoolResponse)
def create_school(
    request: SchoolCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new school."""
    service = SchoolService(db)
    return service.create_school(request)


@router.get("", response_model=list[SchoolResponse])
def list_schools(
    db: Annotated[Session, Depends(get_db)],
):
    """List registered schools."""
    service = SchoolService(db)
    return service.list_schools()


@router.get("/current", response_model=SchoolResponse)
def get_current_school(
    context: SchoolContext,
):
    """Get the school named by the X-School-Id header."""
    return SchoolResponse.model_validate(context.school)


@router.patch("/current", response_model=SchoolResponse)
def update_current_school(
    request: SchoolUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Update grading and registration settings of the current school."""
    service = SchoolService(db)
    return service.update_school(context.school_id, request)
