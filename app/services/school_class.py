"""School class service."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.schemas.school_class import SchoolClassCreate, SchoolClassResponse, SchoolClassUpdate


class ClassService:
    """Class management service."""

    def __init__(self, db: Session):
        self.db = db

    def _to_response(self, school_class: SchoolClass) -> SchoolClassResponse:
        count = self.db.execute(
            select(func.count(Student.id)).where(Student.class_id == school_class.id)
        ).scalar() or 0
        response = SchoolClassResponse.model_validate(school_class)
        response.student_count = count
        return response

    def _check_unique(self, school_id: int, name: str, academic_year: str | None, exclude_id: int | None = None):
        query = select(SchoolClass).where(
            SchoolClass.school_id == school_id,
            SchoolClass.name == name,
            SchoolClass.academic_year == academic_year,
        )
        if exclude_id is not None:
            query = query.where(SchoolClass.id != exclude_id)
        if self.db.execute(query).scalar_one_or_none():
            raise ValidationError(f"Class '{name}' already exists for this academic year")

    def create_class(self, school_id: int, request: SchoolClassCreate) -> SchoolClassResponse:
        """Create a new class."""
        self._check_unique(school_id, request.name, request.academic_year)
        school_class = SchoolClass(school_id=school_id, **request.model_dump())
        self.db.add(school_class)
        self.db.flush()
        self.db.refresh(school_class)
        return self._to_response(school_class)

    def get_class(self, school_id: int, class_id: int) -> SchoolClass:
        """Get class by ID."""
        result = self.db.execute(
            select(SchoolClass).where(
                SchoolClass.id == class_id,
                SchoolClass.school_id == school_id,
            )
        )
        school_class = result.scalar_one_or_none()
        if not school_class:
            raise NotFoundError("Class", str(class_id))
        return school_class

    def get_class_response(self, school_id: int, class_id: int) -> SchoolClassResponse:
        return self._to_response(self.get_class(school_id, class_id))

    def list_classes(self, school_id: int, academic_year: str | None = None) -> list[SchoolClassResponse]:
        """List classes of a school."""
        query = select(SchoolClass).where(SchoolClass.school_id == school_id)
        if academic_year:
            query = query.where(SchoolClass.academic_year == academic_year)
        query = query.order_by(SchoolClass.name, SchoolClass.section)
        return [self._to_response(c) for c in self.db.execute(query).scalars().all()]

    def update_class(self, school_id: int, class_id: int, request: SchoolClassUpdate) -> SchoolClassResponse:
        """Update a class."""
        school_class = self.get_class(school_id, class_id)
        update_data = request.model_dump(exclude_unset=True)
        if "name" in update_data or "academic_year" in update_data:
            self._check_unique(
                school_id,
                update_data.get("name", school_class.name),
                update_data.get("academic_year", school_class.academic_year),
                exclude_id=class_id,
            )
        for field, value in update_data.items():
            setattr(school_class, field, value)
        self.db.flush()
        self.db.refresh(school_class)
        return self._to_response(school_class)

    def delete_class(self, school_id: int, class_id: int) -> None:
        """Delete a class with its students, subjects and exams."""
        school_class = self.get_class(school_id, class_id)
        self.db.delete(school_class)
        self.db.flush()
