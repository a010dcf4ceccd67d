"""Grade entry endpoints."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.core.exceptions import UploadError
from app.schemas.common import MessageResponse, PaginatedResponse
from app.schemas.grade import (
    BulkGradeCreate,
    BulkGradeResponse,
    GradeCreate,
    GradeFilter,
    GradeResponse,
    GradeUpdate,
    GradeUploadResult,
)
from app.services.grade import GradeService

router = APIRouter()


@router.post("", response_model=GradeResponse)
def create_grade(
    request: GradeCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """
    Record a grade.

    A grade with the same student, subject, exam, semester and exam type is
    replaced. The value must lie between 0 and max_grade.
    """
    service = GradeService(db)
    return service.create_grade(context.school, request)


@router.get("", response_model=PaginatedResponse[GradeResponse])
def list_grades(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    class_id: int | None = None,
    student_id: int | None = None,
    subject_id: int | None = None,
    exam_id: int | None = None,
    exam_type: str | None = None,
    semester: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
):
    """List grades with filtering and pagination."""
    service = GradeService(db)
    filters = GradeFilter(
        class_id=class_id,
        student_id=student_id,
        subject_id=subject_id,
        exam_id=exam_id,
        exam_type=exam_type,
        semester=semester,
    )
    grades, total = service.list_grades(context.school, filters, page, page_size)
    return PaginatedResponse.build(items=grades, total=total, page=page, page_size=page_size)


@router.post("/bulk", response_model=BulkGradeResponse)
def bulk_upsert_grades(
    request: BulkGradeCreate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Record one subject's grades for a whole class. Invalid rows are reported, valid rows saved."""
    service = GradeService(db)
    return service.bulk_upsert(context.school, request)


@router.get("/template")
def download_grade_template(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    class_id: int = Query(...),
    subject_id: int = Query(...),
    exam_id: int | None = None,
):
    """Download the Excel grade sheet of a subject, pre-filled with the class roster."""
    service = GradeService(db)
    content = service.generate_template(context.school, class_id, subject_id, exam_id)

    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=notes_classe_{class_id}_matiere_{subject_id}.xlsx"},
    )


@router.post("/upload", response_model=GradeUploadResult)
def upload_grades(
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    class_id: int = Form(...),
    subject_id: int = Form(...),
    exam_id: int | None = Form(None),
    exam_type: str = Form("devoir"),
    semester: str | None = Form(None),
    file: UploadFile = File(...),
):
    """
    Import a filled grade sheet.

    Students are matched by matricule. Partial success is allowed - invalid
    rows are reported and skipped.
    """
    if not file.filename:
        raise UploadError("No file provided")

    if not any(file.filename.lower().endswith(ext) for ext in settings.ALLOWED_EXTENSIONS):
        raise UploadError(f"Only {', '.join(settings.ALLOWED_EXTENSIONS)} files are allowed")

    content = file.file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise UploadError(f"File size exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")

    service = GradeService(db)
    return service.process_excel_upload(
        context.school,
        content,
        class_id=class_id,
        subject_id=subject_id,
        exam_id=exam_id,
        exam_type=exam_type,
        semester=semester,
    )


@router.get("/{grade_id}", response_model=GradeResponse)
def get_grade(
    grade_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Get a grade by ID."""
    service = GradeService(db)
    return service.get_grade_response(context.school_id, grade_id)


@router.patch("/{grade_id}", response_model=GradeResponse)
def update_grade(
    grade_id: int,
    request: GradeUpdate,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Update a grade."""
    service = GradeService(db)
    return service.update_grade(context.school_id, grade_id, request)


@router.delete("/{grade_id}", response_model=MessageResponse)
def delete_grade(
    grade_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a grade."""
    service = GradeService(db)
    service.delete_grade(context.school_id, grade_id)
    return MessageResponse(message="Grade deleted successfully")
