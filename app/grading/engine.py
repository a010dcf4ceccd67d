"""Class results computation.

Every bulletin surface (results table, single and whole-class PDF, annual
bulletin) is built from the structures returned here, so a student's
average and rank are the same wherever they are displayed.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from app.grading.aggregator import SubjectAverage, aggregate_subject
from app.grading.appreciation import NOT_AVAILABLE, get_appreciation
from app.grading.numbers import mean, round_score
from app.grading.periods import period_count, period_label
from app.grading.ranking import competition_ranks, ranking_order
from app.grading.snapshots import (
    GradeSnapshot,
    GradingConfig,
    Scope,
    StudentSnapshot,
    SubjectSnapshot,
)

ZERO = Decimal("0")


@dataclass(frozen=True)
class StudentResult:
    student_id: Any
    student_name: str
    matricule: str | None
    subjects: list[SubjectAverage]
    total_coefficients: Decimal
    total_points: Decimal
    overall_average: Decimal
    has_grades: bool
    appreciation: str
    rank: int | None = None
    total_students: int = 0

    def subject(self, subject_id: Any) -> SubjectAverage | None:
        for entry in self.subjects:
            if entry.subject_id == subject_id:
                return entry
        return None


@dataclass(frozen=True)
class ClassStatistics:
    graded_students: int = 0
    class_average: Decimal | None = None
    highest_average: Decimal | None = None
    lowest_average: Decimal | None = None
    pass_count: int = 0
    subject_averages: dict[Any, Decimal] = field(default_factory=dict)
    appreciation_counts: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ClassResults:
    class_id: Any
    scope: Scope
    results: list[StudentResult]
    statistics: ClassStatistics

    @property
    def total_students(self) -> int:
        return self.statistics.graded_students

    def get(self, student_id: Any) -> StudentResult | None:
        for result in self.results:
            if result.student_id == student_id:
                return result
        return None


@dataclass(frozen=True)
class PeriodAverage:
    period: int
    label: str
    average: Decimal | None
    rank: int | None
    total_students: int = 0


@dataclass(frozen=True)
class AnnualStudentResult:
    student_id: Any
    student_name: str
    matricule: str | None
    periods: list[PeriodAverage]
    annual_average: Decimal
    has_grades: bool
    appreciation: str
    rank: int | None = None
    total_students: int = 0


@dataclass(frozen=True)
class AnnualResults:
    class_id: Any
    period_results: list[ClassResults]
    results: list[AnnualStudentResult]

    def get(self, student_id: Any) -> AnnualStudentResult | None:
        for result in self.results:
            if result.student_id == student_id:
                return result
        return None


def _student_result(
    student: StudentSnapshot,
    subjects: Sequence[SubjectSnapshot],
    grades_by_subject: dict[Any, list[GradeSnapshot]],
    scope: Scope,
    config: GradingConfig,
) -> StudentResult:
    entries = []
    for subject in subjects:
        entry = aggregate_subject(subject, grades_by_subject.get(subject.id, []), scope, config)
        if entry is not None:
            entries.append(entry)

    if not entries:
        return StudentResult(
            student_id=student.id,
            student_name=student.full_name,
            matricule=student.matricule,
            subjects=[],
            total_coefficients=ZERO,
            total_points=ZERO,
            overall_average=ZERO,
            has_grades=False,
            appreciation=NOT_AVAILABLE,
        )

    total_coefficients = sum(sorted(e.coefficient for e in entries), ZERO)
    total_points = sum(sorted(e.weighted_points for e in entries), ZERO)
    overall = round_score(total_points / total_coefficients)
    return StudentResult(
        student_id=student.id,
        student_name=student.full_name,
        matricule=student.matricule,
        subjects=entries,
        total_coefficients=total_coefficients,
        total_points=total_points,
        overall_average=overall,
        has_grades=True,
        appreciation=get_appreciation(overall, config.reference_scale),
    )


def _statistics(results: list[StudentResult], config: GradingConfig) -> ClassStatistics:
    graded = [r for r in results if r.has_grades]
    if not graded:
        return ClassStatistics()

    averages = [r.overall_average for r in graded]
    per_subject: dict[Any, list[Decimal]] = defaultdict(list)
    for result in graded:
        for entry in result.subjects:
            per_subject[entry.subject_id].append(entry.combined_avg)

    return ClassStatistics(
        graded_students=len(graded),
        class_average=round_score(mean(averages)),
        highest_average=max(averages),
        lowest_average=min(averages),
        pass_count=sum(1 for value in averages if value >= config.pass_mark),
        subject_averages={
            subject_id: round_score(mean(values)) for subject_id, values in per_subject.items()
        },
        appreciation_counts=dict(Counter(r.appreciation for r in graded)),
    )


def compute_class_results(
    class_id: Any,
    scope: Scope,
    students: Sequence[StudentSnapshot],
    subjects: Sequence[SubjectSnapshot],
    grades: Iterable[GradeSnapshot],
    config: GradingConfig | None = None,
) -> ClassResults:
    """Aggregate, average and rank every student of a class for ``scope``.

    ``students`` is the class roster; its order breaks display ties. Grades
    outside the roster, the subject list or the scope are ignored.
    """
    if class_id is None:
        raise ValueError("class_id is required")
    if not isinstance(scope, Scope):
        raise ValueError("scope must be a Scope")
    config = config or GradingConfig()

    student_ids = {s.id for s in students}
    subject_ids = {s.id for s in subjects}
    by_student: dict[Any, dict[Any, list[GradeSnapshot]]] = defaultdict(lambda: defaultdict(list))
    for grade in grades:
        if grade.student_id not in student_ids or grade.subject_id not in subject_ids:
            continue
        if scope.includes(grade, config):
            by_student[grade.student_id][grade.subject_id].append(grade)

    unranked = [
        _student_result(student, subjects, by_student.get(student.id, {}), scope, config)
        for student in students
    ]

    averages = [r.overall_average if r.has_grades else None for r in unranked]
    ranks = competition_ranks(averages)
    total = sum(1 for value in averages if value is not None)

    ordered = []
    for index in ranking_order(averages):
        result = unranked[index]
        ordered.append(replace(result, rank=ranks[index], total_students=total))

    return ClassResults(
        class_id=class_id,
        scope=scope,
        results=ordered,
        statistics=_statistics(ordered, config),
    )


def compute_student_result(
    class_id: Any,
    scope: Scope,
    student_id: Any,
    students: Sequence[StudentSnapshot],
    subjects: Sequence[SubjectSnapshot],
    grades: Iterable[GradeSnapshot],
    config: GradingConfig | None = None,
) -> StudentResult:
    """One student's result, ranked against the whole class."""
    results = compute_class_results(class_id, scope, students, subjects, grades, config)
    result = results.get(student_id)
    if result is None:
        raise ValueError(f"Student {student_id} is not in class {class_id}")
    return result


def compute_annual_results(
    class_id: Any,
    students: Sequence[StudentSnapshot],
    subjects: Sequence[SubjectSnapshot],
    grades: Iterable[GradeSnapshot],
    config: GradingConfig | None = None,
) -> AnnualResults:
    """Period-by-period averages and the annual ranking of a class.

    The annual average is the mean of the periods in which the student has
    grades.
    """
    config = config or GradingConfig()
    grades = list(grades)
    count = period_count(config.period_system)
    period_results = [
        compute_class_results(
            class_id,
            Scope.for_period(index, config.period_system),
            students,
            subjects,
            grades,
            config,
        )
        for index in range(1, count + 1)
    ]

    rows = []
    for student in students:
        periods = []
        for index, period in enumerate(period_results, start=1):
            result = period.get(student.id)
            periods.append(
                PeriodAverage(
                    period=index,
                    label=period_label(index, config.period_system),
                    average=result.overall_average if result.has_grades else None,
                    rank=result.rank,
                    total_students=result.total_students,
                )
            )
        available = [p.average for p in periods if p.average is not None]
        rows.append((student, periods, round_score(mean(available)) if available else None))

    averages = [annual for _, _, annual in rows]
    ranks = competition_ranks(averages)
    total = sum(1 for value in averages if value is not None)

    results = []
    for index in ranking_order(averages):
        student, periods, annual = rows[index]
        results.append(
            AnnualStudentResult(
                student_id=student.id,
                student_name=student.full_name,
                matricule=student.matricule,
                periods=periods,
                annual_average=annual if annual is not None else ZERO,
                has_grades=annual is not None,
                appreciation=(
                    get_appreciation(annual, config.reference_scale)
                    if annual is not None
                    else NOT_AVAILABLE
                ),
                rank=ranks[index],
                total_students=total,
            )
        )

    return AnnualResults(class_id=class_id, period_results=period_results, results=results)
