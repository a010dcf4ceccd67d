"""Student management service."""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.schemas.student import (
    PaginatedStudentResponse,
    StudentCreate,
    StudentFilter,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)

MATRICULE_DIGITS = 3


class StudentService:
    """Student management service."""

    def __init__(self, db: Session):
        self.db = db

    def create_student(
        self,
        school: School,
        request: StudentCreate,
    ) -> StudentResponse:
        """Create a new student, generating the matricule when allowed."""
        self._get_class(school.id, request.class_id)

        matricule = request.matricule
        if not matricule:
            if not school.auto_generate_matricule:
                raise ValidationError("Matricule is required for this school")
            matricule = self.next_matricule(school)
        elif self._matricule_taken(school.id, matricule):
            raise ValidationError(f"Matricule '{matricule}' is already used")

        student = Student(
            school_id=school.id,
            matricule=matricule,
            **request.model_dump(exclude={"matricule"}),
        )
        self.db.add(student)
        self.db.flush()
        self.db.refresh(student)
        return StudentResponse.model_validate(student)

    def next_matricule(self, school: School) -> str:
        """Next free matricule: school prefix + student count + 1, zero padded."""
        prefix = school.student_matricule_prefix or "ELEVE"
        count = self.db.execute(
            select(func.count(Student.id)).where(Student.school_id == school.id)
        ).scalar() or 0

        number = count + 1
        matricule = f"{prefix}{number:0{MATRICULE_DIGITS}d}"
        while self._matricule_taken(school.id, matricule):
            number += 1
            matricule = f"{prefix}{number:0{MATRICULE_DIGITS}d}"
        return matricule

    def _matricule_taken(self, school_id: int, matricule: str, exclude_id: int | None = None) -> bool:
        query = select(Student.id).where(
            Student.school_id == school_id,
            Student.matricule == matricule,
        )
        if exclude_id is not None:
            query = query.where(Student.id != exclude_id)
        return self.db.execute(query).first() is not None

    def _get_class(self, school_id: int, class_id: int) -> SchoolClass:
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

    def get_student(self, school_id: int, student_id: int) -> Student:
        """Get student by ID."""
        result = self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.school_id == school_id,
            )
        )
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def update_student(
        self,
        school_id: int,
        student_id: int,
        request: StudentUpdate,
    ) -> StudentResponse:
        """Update a student."""
        student = self.get_student(school_id, student_id)
        update_data = request.model_dump(exclude_unset=True)

        if update_data.get("class_id") is not None:
            self._get_class(school_id, update_data["class_id"])
        if update_data.get("matricule") and self._matricule_taken(
            school_id, update_data["matricule"], exclude_id=student_id
        ):
            raise ValidationError(f"Matricule '{update_data['matricule']}' is already used")

        for field, value in update_data.items():
            if value is None and field in ("class_id", "matricule", "first_name", "last_name"):
                continue
            setattr(student, field, value)
        self.db.flush()
        self.db.refresh(student)
        return StudentResponse.model_validate(student)

    def delete_student(self, school_id: int, student_id: int) -> None:
        """Delete a student and their grades."""
        student = self.get_student(school_id, student_id)
        self.db.delete(student)
        self.db.flush()

    def list_students(
        self,
        school_id: int,
        filters: StudentFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> PaginatedStudentResponse:
        """List students with filtering and pagination."""
        query = select(Student).where(Student.school_id == school_id)

        if filters:
            if filters.class_id:
                query = query.where(Student.class_id == filters.class_id)
            if filters.search:
                search_term = f"%{filters.search}%"
                query = query.where(
                    or_(
                        Student.first_name.ilike(search_term),
                        Student.last_name.ilike(search_term),
                        Student.matricule.ilike(search_term),
                    )
                )

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = self.db.execute(count_query).scalar() or 0

        # Apply pagination
        offset = (page - 1) * page_size
        query = query.order_by(Student.last_name, Student.first_name, Student.id)
        query = query.offset(offset).limit(page_size)

        students = self.db.execute(query).scalars().all()

        return PaginatedStudentResponse.build(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            page_size=page_size,
        )
