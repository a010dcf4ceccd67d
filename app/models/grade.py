"""Grade record model."""

from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class Grade(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """One recorded score.

    Upserted on (student, subject, exam, semester, exam_type); see GradeService.
    """

    __tablename__ = "grades"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    exam_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    grade_value: Mapped[Decimal] = mapped_column(DECIMAL(6, 2), nullable=False)
    max_grade: Mapped[Decimal] = mapped_column(DECIMAL(6, 2), default=Decimal("20"), nullable=False)
    coefficient: Mapped[Decimal] = mapped_column(DECIMAL(6, 2), default=Decimal("1"), nullable=False)
    exam_type: Mapped[str] = mapped_column(String(50), nullable=False, default="devoir")
    semester: Mapped[str | None] = mapped_column(String(30), nullable=True)

    # Relationships
    student: Mapped["Student"] = relationship("Student", back_populates="grades")
    subject: Mapped["Subject"] = relationship("Subject", lazy="selectin")
    exam: Mapped["Exam"] = relationship("Exam", back_populates="grades")

    __table_args__ = (
        Index("ix_grades_school_student_subject", "school_id", "student_id", "subject_id"),
    )

    def __repr__(self) -> str:
        return f"<Grade(student_id={self.student_id}, subject_id={self.subject_id}, value={self.grade_value})>"
