"""Grade aggregation and class ranking engine."""

from app.grading.aggregator import SubjectAverage, aggregate_subject
from app.grading.appreciation import APPRECIATION_BANDS, appreciation_legend, get_appreciation
from app.grading.engine import (
    AnnualResults,
    AnnualStudentResult,
    ClassResults,
    ClassStatistics,
    PeriodAverage,
    StudentResult,
    compute_annual_results,
    compute_class_results,
    compute_student_result,
)
from app.grading.periods import canonical_period, matches_period, period_count, period_label, period_tag
from app.grading.snapshots import GradeSnapshot, GradingConfig, Scope, StudentSnapshot, SubjectSnapshot

__all__ = [
    # Inputs
    "GradeSnapshot",
    "SubjectSnapshot",
    "StudentSnapshot",
    "GradingConfig",
    "Scope",
    # Periods
    "canonical_period",
    "matches_period",
    "period_count",
    "period_label",
    "period_tag",
    # Appreciation
    "APPRECIATION_BANDS",
    "appreciation_legend",
    "get_appreciation",
    # Aggregation
    "SubjectAverage",
    "aggregate_subject",
    # Results
    "StudentResult",
    "ClassStatistics",
    "ClassResults",
    "PeriodAverage",
    "AnnualStudentResult",
    "AnnualResults",
    "compute_class_results",
    "compute_student_result",
    "compute_annual_results",
]
