"""Subject service."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate


class SubjectService:
    """Subject management service."""

    def __init__(self, db: Session):
        self.db = db

    def _check_class(self, school_id: int, class_id: int) -> None:
        result = self.db.execute(
            select(SchoolClass.id).where(
                SchoolClass.id == class_id,
                SchoolClass.school_id == school_id,
            )
        )
        if result.first() is None:
            raise NotFoundError("Class", str(class_id))

    def _check_unique(self, class_id: int, name: str, exclude_id: int | None = None) -> None:
        query = select(Subject.id).where(Subject.class_id == class_id, Subject.name == name)
        if exclude_id is not None:
            query = query.where(Subject.id != exclude_id)
        if self.db.execute(query).first() is not None:
            raise ValidationError(f"Subject '{name}' already exists in this class")

    def create_subject(self, school_id: int, request: SubjectCreate) -> SubjectResponse:
        """Create a subject for a class."""
        self._check_class(school_id, request.class_id)
        self._check_unique(request.class_id, request.name)
        subject = Subject(school_id=school_id, **request.model_dump())
        self.db.add(subject)
        self.db.flush()
        self.db.refresh(subject)
        return SubjectResponse.model_validate(subject)

    def get_subject(self, school_id: int, subject_id: int) -> Subject:
        """Get subject by ID."""
        result = self.db.execute(
            select(Subject).where(
                Subject.id == subject_id,
                Subject.school_id == school_id,
            )
        )
        subject = result.scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        return subject

    def list_subjects(self, school_id: int, class_id: int | None = None) -> list[Subject]:
        """List subjects, optionally of one class, in a stable order."""
        query = select(Subject).where(Subject.school_id == school_id)
        if class_id is not None:
            query = query.where(Subject.class_id == class_id)
        query = query.order_by(Subject.class_id, Subject.name, Subject.id)
        return list(self.db.execute(query).scalars().all())

    def update_subject(self, school_id: int, subject_id: int, request: SubjectUpdate) -> SubjectResponse:
        """Update a subject's name, coefficient or scale."""
        subject = self.get_subject(school_id, subject_id)
        update_data = request.model_dump(exclude_unset=True)
        if update_data.get("name"):
            self._check_unique(subject.class_id, update_data["name"], exclude_id=subject_id)
        for field, value in update_data.items():
            if value is None and field != "abbreviation":
                continue
            setattr(subject, field, value)
        self.db.flush()
        self.db.refresh(subject)
        return SubjectResponse.model_validate(subject)

    def delete_subject(self, school_id: int, subject_id: int) -> None:
        """Delete a subject and its grades."""
        subject = self.get_subject(school_id, subject_id)
        self.db.delete(subject)
        self.db.flush()
