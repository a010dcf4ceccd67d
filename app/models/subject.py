"""Subject model."""

from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class Subject(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Subject taught in a class, carrying its grading scale and weight."""

    __tablename__ = "subjects"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    abbreviation: Mapped[str | None] = mapped_column(String(20), nullable=True)
    coefficient: Mapped[Decimal | None] = mapped_column(DECIMAL(6, 2), default=Decimal("1"), nullable=True)
    max_score: Mapped[Decimal | None] = mapped_column(DECIMAL(6, 2), default=Decimal("20"), nullable=True)

    # Relationships
    school_class: Mapped["SchoolClass"] = relationship("SchoolClass", back_populates="subjects")

    __table_args__ = (
        UniqueConstraint("class_id", "name", name="uq_subject_class_name"),
    )

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name}, coefficient={self.coefficient})>"
