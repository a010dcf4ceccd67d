"""School (tenant) model."""

import enum

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, TimestampMixin


class PeriodSystem(str, enum.Enum):
    """How the academic year is divided for bulletins."""

    SEMESTRE = "semestre"
    TRIMESTRE = "trimestre"


class School(Base, IDMixin, TimestampMixin):
    """School model holding the per-school grading and registration settings."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    academic_year: Mapped[str | None] = mapped_column(String(9), nullable=True)  # "2024-2025"
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    period_system: Mapped[PeriodSystem] = mapped_column(
        Enum(PeriodSystem),
        default=PeriodSystem.SEMESTRE,
        nullable=False,
    )
    # Untagged grades are dropped from period bulletins instead of matching every period
    strict_semester_match: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    student_matricule_prefix: Mapped[str] = mapped_column(String(20), default="ELEVE", nullable=False)
    auto_generate_matricule: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    classes: Mapped[list["SchoolClass"]] = relationship(
        "SchoolClass",
        back_populates="school",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name})>"
