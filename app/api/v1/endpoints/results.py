"""Results, bulletin and ranking endpoints."""

from io import BytesIO
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import SchoolContext
from app.schemas.results import AnnualResultsResponse, ClassResultsResponse, StudentResultResponse
from app.services.bulletin import BulletinService
from app.services.results import ResultsService

router = APIRouter()

ExamQuery = Annotated[int | None, Query(description="Exam to report on (exclusive with semester)")]
SemesterQuery = Annotated[str | None, Query(description="Period to report on, e.g. '1er_semestre', 'S2', 'T1'")]
PublishedOnlyQuery = Annotated[bool, Query(description="Leave out grades of unpublished exams")]


def _pdf_response(content: bytes, filename: str) -> StreamingResponse:
    # Headers are latin-1; matricules may not be
    quoted = quote(filename)
    if quoted != filename:
        disposition = f"inline; filename*=utf-8''{quoted}"
    else:
        disposition = f'inline; filename="{filename}"'
    return StreamingResponse(
        BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": disposition},
    )


@router.get("/classes/{class_id}", response_model=ClassResultsResponse)
def get_class_results(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    exam_id: ExamQuery = None,
    semester: SemesterQuery = None,
    published_only: PublishedOnlyQuery = False,
):
    """
    Ranked results of a class for one exam or one period.

    Exactly one of exam_id and semester must be given. Students without
    grades are listed last, unranked.
    """
    service = ResultsService(db)
    return service.class_results_response(context.school, class_id, exam_id, semester, published_only)


@router.get("/classes/{class_id}/annual", response_model=AnnualResultsResponse)
def get_annual_results(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    published_only: PublishedOnlyQuery = False,
):
    """Period averages and annual ranking of a class."""
    service = ResultsService(db)
    return service.annual_results_response(context.school, class_id, published_only)


@router.get("/classes/{class_id}/bulletin.pdf")
def download_class_bulletins(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    exam_id: ExamQuery = None,
    semester: SemesterQuery = None,
    published_only: PublishedOnlyQuery = False,
):
    """Whole-class PDF: ranking page, then one bulletin per student."""
    service = BulletinService(db)
    content, filename = service.class_bulletins(context.school, class_id, exam_id, semester, published_only)
    return _pdf_response(content, filename)


@router.get("/classes/{class_id}/ranking.xlsx")
def download_class_ranking(
    class_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    exam_id: ExamQuery = None,
    semester: SemesterQuery = None,
    published_only: PublishedOnlyQuery = False,
):
    """Class ranking as an Excel sheet."""
    service = ResultsService(db)
    content = service.export_ranking(context.school, class_id, exam_id, semester, published_only)
    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=classement_classe_{class_id}.xlsx"},
    )


@router.get("/classes/{class_id}/students/{student_id}", response_model=StudentResultResponse)
def get_student_result(
    class_id: int,
    student_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    exam_id: ExamQuery = None,
    semester: SemesterQuery = None,
    published_only: PublishedOnlyQuery = False,
):
    """One student's bulletin data, ranked against the whole class."""
    service = ResultsService(db)
    return service.student_result_response(
        context.school, class_id, student_id, exam_id, semester, published_only
    )


@router.get("/classes/{class_id}/students/{student_id}/bulletin.pdf")
def download_student_bulletin(
    class_id: int,
    student_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    exam_id: ExamQuery = None,
    semester: SemesterQuery = None,
    published_only: PublishedOnlyQuery = False,
):
    """Single-student PDF bulletin."""
    service = BulletinService(db)
    content, filename = service.student_bulletin(
        context.school, class_id, student_id, exam_id, semester, published_only
    )
    return _pdf_response(content, filename)


@router.get("/classes/{class_id}/students/{student_id}/annual.pdf")
def download_annual_bulletin(
    class_id: int,
    student_id: int,
    context: SchoolContext,
    db: Annotated[Session, Depends(get_db)],
    published_only: PublishedOnlyQuery = False,
):
    """Annual PDF bulletin of one student."""
    service = BulletinService(db)
    content, filename = service.annual_bulletin(context.school, class_id, student_id, published_only)
    return _pdf_response(content, filename)
