"""Immutable inputs of the grading engine.

The engine never talks to the database: the service layer copies rows into
these snapshots and hands them over in one call.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from app.grading.periods import SEMESTRE, matches_period, period_label


@dataclass(frozen=True)
class GradeSnapshot:
    """One recorded score, as stored (values may be malformed)."""

    student_id: Any
    subject_id: Any
    grade_value: Any
    max_grade: Any = None
    coefficient: Any = None
    exam_id: Any = None
    exam_type: str | None = None
    semester: str | None = None
    school_id: Any = None


@dataclass(frozen=True)
class SubjectSnapshot:
    id: Any
    name: str
    coefficient: Any = None
    max_score: Any = None


@dataclass(frozen=True)
class StudentSnapshot:
    id: Any
    first_name: str = ""
    last_name: str = ""
    matricule: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()


@dataclass(frozen=True)
class GradingConfig:
    """Explicit grading settings for one computation.

    scale_source:
        "subject" interprets every grade against the subject's current
        max_score; "record" uses the max_grade stored with each grade.
    """

    reference_scale: Decimal = Decimal("20")
    period_system: str = SEMESTRE
    strict_period_match: bool = False
    scale_source: str = "subject"
    default_max_score: Decimal = Decimal("20")
    default_coefficient: Decimal = Decimal("1")

    @property
    def pass_mark(self) -> Decimal:
        return self.reference_scale / 2


@dataclass(frozen=True)
class Scope:
    """What a bulletin covers: one exam, or one period of the school year.

    Exam scopes aggregate in composition mode only for composition exams;
    period scopes always combine devoir and composition components.
    """

    exam_id: Any = None
    period: int | None = None
    composition: bool = False
    label: str = field(default="", compare=False)

    def __post_init__(self):
        if (self.exam_id is None) == (self.period is None):
            raise ValueError("Scope needs exactly one of exam_id or period")
        if self.period is not None and self.period < 1:
            raise ValueError(f"Invalid period index: {self.period}")

    @classmethod
    def for_exam(cls, exam_id: Any, title: str = "", exam_type: str | None = None) -> "Scope":
        text = f"{title or ''} {exam_type or ''}".lower()
        return cls(exam_id=exam_id, composition="composition" in text, label=title or "EXAMEN")

    @classmethod
    def for_period(cls, index: int, system: str = SEMESTRE) -> "Scope":
        return cls(period=index, composition=True, label=period_label(index, system))

    @property
    def is_exam(self) -> bool:
        return self.exam_id is not None

    def includes(self, grade: GradeSnapshot, config: GradingConfig) -> bool:
        """Whether ``grade`` belongs to this scope."""
        if self.is_exam:
            return grade.exam_id == self.exam_id
        return matches_period(
            grade.semester,
            self.period,
            config.period_system,
            strict=config.strict_period_match,
        )
