"""Exam model."""

from datetime import date

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class Exam(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Exam held for a class; grades may be attached to it."""

    __tablename__ = "exams"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    exam_type: Mapped[str | None] = mapped_column(String(50), nullable=True)  # "Composition", "Devoir", ...
    semester: Mapped[str | None] = mapped_column(String(30), nullable=True)
    exam_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    grades: Mapped[list["Grade"]] = relationship(
        "Grade",
        back_populates="exam",
        cascade="all, delete-orphan",
        lazy="selectin",
        passive_deletes=True,
    )

    @property
    def is_composition(self) -> bool:
        """Composition exams combine devoir and composition scores."""
        text = f"{self.title or ''} {self.exam_type or ''}".lower()
        return "composition" in text

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, title={self.title}, published={self.is_published})>"
