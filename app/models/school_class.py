"""School class (roster) model."""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class SchoolClass(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A class of students sharing subjects and exams."""

    __tablename__ = "classes"

    name: Mapped[str] = mapped_column(String(100), nullable=False)  # 'class' is reserved keyword
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    section: Mapped[str | None] = mapped_column(String(50), nullable=True)
    academic_year: Mapped[str | None] = mapped_column(String(9), nullable=True)

    # Relationships
    school: Mapped["School"] = relationship("School", back_populates="classes")
    students: Mapped[list["Student"]] = relationship(
        "Student",
        back_populates="school_class",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )
    subjects: Mapped[list["Subject"]] = relationship(
        "Subject",
        back_populates="school_class",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("school_id", "name", "academic_year", name="uq_class_school_name_year"),
    )

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.section}" if self.section else self.name

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, name={self.name})>"
