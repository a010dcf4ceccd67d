"""School (tenant) service."""

import logging

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.grading.periods import parse_period, period_count, period_tag
from app.models.exam import Exam
from app.models.grade import Grade
from app.models.school import PeriodSystem, School
from app.schemas.school import SchoolCreate, SchoolResponse, SchoolUpdate

logger = logging.getLogger(__name__)


class SchoolService:
    """School registration and settings service."""

    def __init__(self, db: Session):
        self.db = db

    def create_school(self, request: SchoolCreate) -> SchoolResponse:
        """Register a new school."""
        existing = self.db.execute(select(School).where(School.slug == request.slug))
        if existing.scalar_one_or_none():
            raise ValidationError(f"School slug '{request.slug}' is already taken")

        school = School(**request.model_dump())
        self.db.add(school)
        self.db.flush()
        self.db.refresh(school)
        logger.info(f"School created: id={school.id}, slug={school.slug}")
        return SchoolResponse.model_validate(school)

    def get_school(self, school_id: int) -> School:
        """Get school by ID."""
        result = self.db.execute(select(School).where(School.id == school_id))
        school = result.scalar_one_or_none()
        if not school:
            raise NotFoundError("School", str(school_id))
        return school

    def list_schools(self) -> list[SchoolResponse]:
        """List all schools."""
        result = self.db.execute(select(School).order_by(School.name))
        return [SchoolResponse.model_validate(s) for s in result.scalars().all()]

    def update_school(self, school_id: int, request: SchoolUpdate) -> SchoolResponse:
        """Update school settings.

        Changing the period system retags stored grades and exams, see
        ``_retag_periods``.
        """
        school = self.get_school(school_id)
        previous_system = school.period_system
        update_data = request.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(school, field, value)
        if previous_system and school.period_system and school.period_system != previous_system:
            self._retag_periods(school, previous_system)
        self.db.flush()
        self.db.refresh(school)
        logger.info(f"School settings updated: id={school.id}, fields={sorted(update_data)}")
        return SchoolResponse.model_validate(school)

    def _retag_periods(self, school: School, previous: PeriodSystem) -> None:
        """Move stored period tags to the school's new period system.

        Tags keep their index, so "2eme_semestre" becomes "2eme_trimestre".
        A third trimester has no semester counterpart and keeps its tag.
        """
        new_count = period_count(school.period_system)
        for model in (Grade, Exam):
            tags = self.db.execute(
                select(model.semester)
                .where(model.school_id == school.id, model.semester.is_not(None))
                .distinct()
            ).scalars().all()
            for tag in tags:
                parsed = parse_period(tag)
                if parsed is None or parsed[1] != previous.value:
                    continue
                index = parsed[0]
                if index > new_count:
                    logger.warning(
                        f"School {school.id}: {model.__tablename__} tagged '{tag}' have no "
                        f"{school.period_system.value} counterpart and were left unchanged"
                    )
                    continue
                result = self.db.execute(
                    update(model)
                    .where(model.school_id == school.id, model.semester == tag)
                    .values(semester=period_tag(index, school.period_system))
                )
                logger.info(
                    f"School {school.id}: {result.rowcount} {model.__tablename__} retagged "
                    f"'{tag}' -> '{period_tag(index, school.period_system)}'"
                )
