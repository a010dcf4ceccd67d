"""Per-subject aggregation of grade records."""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from app.grading.appreciation import get_appreciation
from app.grading.numbers import MAX_MAGNITUDE, mean, round_score, to_decimal
from app.grading.snapshots import GradeSnapshot, GradingConfig, Scope, SubjectSnapshot

DEVOIR = "devoir"
COMPOSITION = "composition"


@dataclass(frozen=True)
class SubjectAverage:
    """Aggregated result of one student in one subject.

    All averages are expressed on the reference scale and rounded to two
    decimals. ``devoir_avg``/``composition_avg`` are only filled in
    composition mode, and only for the components that have records.
    """

    subject_id: object
    subject_name: str
    coefficient: Decimal
    max_score: Decimal
    combined_avg: Decimal
    weighted_points: Decimal
    appreciation: str
    devoir_avg: Decimal | None = None
    composition_avg: Decimal | None = None


def _positive(value, default: Decimal) -> Decimal:
    number = to_decimal(value)
    if number is None or number <= 0:
        return default
    return number


def resolve_coefficient(subject: SubjectSnapshot, config: GradingConfig) -> Decimal:
    """Subject coefficient, falling back to the default when missing or not positive."""
    return _positive(subject.coefficient, config.default_coefficient)


def resolve_max_score(subject: SubjectSnapshot, config: GradingConfig) -> Decimal:
    """Subject scale, falling back to the default when missing or not positive."""
    return _positive(subject.max_score, config.default_max_score)


def normalized_value(
    grade: GradeSnapshot,
    subject: SubjectSnapshot,
    config: GradingConfig,
) -> Decimal | None:
    """Grade value on the reference scale, or None when it cannot be used."""
    value = to_decimal(grade.grade_value)
    if value is None or value < 0:
        return None

    scale = resolve_max_score(subject, config)
    if config.scale_source == "record":
        scale = _positive(grade.max_grade, scale)

    if scale == config.reference_scale:
        return value
    rescaled = value * config.reference_scale / scale
    # Near-zero scales push the value out of range
    if rescaled >= MAX_MAGNITUDE:
        return None
    return rescaled


def _exam_type(grade: GradeSnapshot) -> str:
    return (grade.exam_type or "").strip().lower()


def aggregate_subject(
    subject: SubjectSnapshot,
    grades: Iterable[GradeSnapshot],
    scope: Scope,
    config: GradingConfig,
) -> SubjectAverage | None:
    """Aggregate one student's in-scope records for ``subject``.

    Returns None when no usable record exists, so the subject stays out of
    the overall average instead of counting as zero.
    """
    devoirs: list[Decimal] = []
    compositions: list[Decimal] = []
    others: list[Decimal] = []

    for grade in grades:
        value = normalized_value(grade, subject, config)
        if value is None:
            continue
        kind = _exam_type(grade)
        if kind == DEVOIR:
            devoirs.append(value)
        elif kind == COMPOSITION:
            compositions.append(value)
        else:
            others.append(value)

    devoir_avg = composition_avg = None
    if scope.composition:
        if devoirs:
            devoir_avg = round_score(mean(devoirs))
        if compositions:
            composition_avg = round_score(mean(compositions))

        if devoir_avg is not None and composition_avg is not None:
            combined = round_score((devoir_avg + composition_avg) / 2)
        elif devoir_avg is not None:
            combined = devoir_avg
        elif composition_avg is not None:
            combined = composition_avg
        else:
            return None
    else:
        values = devoirs + compositions + others
        if not values:
            return None
        combined = round_score(mean(values))

    coefficient = resolve_coefficient(subject, config)
    return SubjectAverage(
        subject_id=subject.id,
        subject_name=subject.name,
        coefficient=coefficient,
        max_score=resolve_max_score(subject, config),
        combined_avg=combined,
        weighted_points=round_score(combined * coefficient),
        appreciation=get_appreciation(combined, config.reference_scale),
        devoir_avg=devoir_avg,
        composition_avg=composition_avg,
    )
