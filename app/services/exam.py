"""Exam service for CRUD and publication."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.grading.periods import canonical_period
from app.models.exam import Exam
from app.models.school import School
from app.models.school_class import SchoolClass
from app.schemas.exam import ExamCreate, ExamFilter, ExamResponse, ExamUpdate

logger = logging.getLogger(__name__)


class ExamService:
    """Exam management service."""

    def __init__(self, db: Session):
        self.db = db

    def create_exam(self, school: School, request: ExamCreate) -> ExamResponse:
        """Create an exam for a class. Exams start unpublished."""
        self._check_class(school.id, request.class_id)
        data = request.model_dump()
        data["semester"] = canonical_period(request.semester, school.period_system)

        exam = Exam(school_id=school.id, **data)
        self.db.add(exam)
        self.db.flush()
        self.db.refresh(exam)
        return ExamResponse.model_validate(exam)

    def _check_class(self, school_id: int, class_id: int) -> None:
        result = self.db.execute(
            select(SchoolClass.id).where(
                SchoolClass.id == class_id,
                SchoolClass.school_id == school_id,
            )
        )
        if result.first() is None:
            raise NotFoundError("Class", str(class_id))

    def get_exam(self, school_id: int, exam_id: int) -> Exam:
        """Get exam by ID."""
        result = self.db.execute(
            select(Exam).where(
                Exam.id == exam_id,
                Exam.school_id == school_id,
            )
        )
        exam = result.scalar_one_or_none()
        if not exam:
            raise NotFoundError("Exam", str(exam_id))
        return exam

    def list_exams(self, school: School, filters: ExamFilter | None = None) -> list[ExamResponse]:
        """List exams with filtering, most recent first."""
        query = select(Exam).where(Exam.school_id == school.id)

        if filters:
            if filters.class_id:
                query = query.where(Exam.class_id == filters.class_id)
            if filters.semester:
                query = query.where(Exam.semester == canonical_period(filters.semester, school.period_system))
            if filters.is_published is not None:
                query = query.where(Exam.is_published == filters.is_published)
            if filters.date_from:
                query = query.where(Exam.exam_date >= filters.date_from)
            if filters.date_to:
                query = query.where(Exam.exam_date <= filters.date_to)

        query = query.order_by(Exam.exam_date.desc(), Exam.title)
        return [ExamResponse.model_validate(e) for e in self.db.execute(query).scalars().all()]

    def update_exam(self, school: School, exam_id: int, request: ExamUpdate) -> ExamResponse:
        """Update an exam."""
        exam = self.get_exam(school.id, exam_id)
        update_data = request.model_dump(exclude_unset=True)
        if "semester" in update_data:
            update_data["semester"] = canonical_period(update_data["semester"], school.period_system)
        for field, value in update_data.items():
            if value is None and field in ("title", "exam_date"):
                continue
            setattr(exam, field, value)
        self.db.flush()
        self.db.refresh(exam)
        return ExamResponse.model_validate(exam)

    def set_published(self, school_id: int, exam_id: int, published: bool) -> ExamResponse:
        """Publish or withdraw the results of an exam."""
        exam = self.get_exam(school_id, exam_id)
        exam.is_published = published
        self.db.flush()
        self.db.refresh(exam)
        logger.info(f"Exam {exam.id} {'published' if published else 'unpublished'}")
        return ExamResponse.model_validate(exam)

    def delete_exam(self, school_id: int, exam_id: int) -> None:
        """Delete an exam and the grades attached to it."""
        exam = self.get_exam(school_id, exam_id)
        self.db.delete(exam)
        self.db.flush()
