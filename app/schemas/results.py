"""Results (bulletin) schemas."""

from decimal import Decimal

from app.schemas.common import BaseSchema


class SubjectResult(BaseSchema):
    """One subject line of a bulletin."""

    subject_id: int
    subject_name: str
    coefficient: Decimal
    max_score: Decimal
    devoir_avg: Decimal | None = None
    composition_avg: Decimal | None = None
    combined_avg: Decimal
    weighted_points: Decimal
    appreciation: str


class StudentResultResponse(BaseSchema):
    """A student's bulletin for one exam or one period."""

    student_id: int
    student_name: str
    matricule: str | None
    subjects: list[SubjectResult]
    total_coefficients: Decimal
    total_points: Decimal
    overall_average: Decimal
    rank: int | None
    total_students: int
    has_grades: bool
    appreciation: str


class SubjectClassAverage(BaseSchema):
    """Class average of one subject."""

    subject_id: int
    subject_name: str
    average: Decimal


class ClassStatisticsResponse(BaseSchema):
    """Class-level figures printed under the ranking."""

    graded_students: int
    class_average: Decimal | None
    highest_average: Decimal | None
    lowest_average: Decimal | None
    pass_count: int
    subject_averages: list[SubjectClassAverage]
    appreciation_counts: dict[str, int]


class ClassResultsResponse(BaseSchema):
    """Ranked results of a class for one exam or one period."""

    class_id: int
    class_name: str
    scope_label: str
    composition_mode: bool
    exam_id: int | None = None
    semester: str | None = None
    total_students: int
    results: list[StudentResultResponse]
    statistics: ClassStatisticsResponse


class PeriodAverageResponse(BaseSchema):
    """One period column of the annual bulletin."""

    period: int
    label: str
    average: Decimal | None
    rank: int | None
    total_students: int


class AnnualStudentResultResponse(BaseSchema):
    """A student's annual bulletin line."""

    student_id: int
    student_name: str
    matricule: str | None
    periods: list[PeriodAverageResponse]
    annual_average: Decimal
    rank: int | None
    total_students: int
    has_grades: bool
    appreciation: str


class AnnualResultsResponse(BaseSchema):
    """Annual ranking of a class."""

    class_id: int
    class_name: str
    period_system: str
    results: list[AnnualStudentResultResponse]
