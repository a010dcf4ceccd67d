"""Results service: loads a class from the store and runs the grading engine."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ResultsNotPublishedError, ValidationError
from app.grading import (
    AnnualResults,
    ClassResults,
    GradeSnapshot,
    GradingConfig,
    Scope,
    StudentResult,
    StudentSnapshot,
    SubjectSnapshot,
    compute_annual_results,
    compute_class_results,
    period_count,
)
from app.grading.aggregator import resolve_coefficient
from app.grading.numbers import to_decimal
from app.grading.periods import parse_period, period_tag
from app.models.exam import Exam
from app.models.grade import Grade
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.models.subject import Subject
from app.schemas.results import (
    AnnualResultsResponse,
    ClassResultsResponse,
    ClassStatisticsResponse,
    StudentResultResponse,
    SubjectClassAverage,
)

logger = logging.getLogger(__name__)


@dataclass
class ClassSnapshot:
    """Everything the engine needs about one class, read in one go."""

    school: School
    school_class: SchoolClass
    config: GradingConfig
    students: list[StudentSnapshot]
    subjects: list[SubjectSnapshot]
    grades: list[GradeSnapshot]


def build_grading_config(school: School) -> GradingConfig:
    """Engine configuration from application settings and the school's own settings."""
    period_system = school.period_system.value if school.period_system else settings.DEFAULT_PERIOD_SYSTEM
    return GradingConfig(
        reference_scale=Decimal(str(settings.REFERENCE_SCALE)),
        period_system=period_system,
        strict_period_match=bool(school.strict_semester_match or settings.STRICT_PERIOD_MATCH),
        scale_source=settings.GRADE_SCALE_SOURCE,
        default_max_score=Decimal(str(settings.DEFAULT_MAX_SCORE)),
        default_coefficient=Decimal(str(settings.DEFAULT_COEFFICIENT)),
    )


class ResultsService:
    """Bulletin and ranking computation service."""

    def __init__(self, db: Session):
        self.db = db

    # ==========================================
    # Loading
    # ==========================================

    def _get_class(self, school_id: int, class_id: int) -> SchoolClass:
        result = self.db.execute(
            select(SchoolClass).where(SchoolClass.id == class_id, SchoolClass.school_id == school_id)
        )
        school_class = result.scalar_one_or_none()
        if not school_class:
            raise NotFoundError("Class", str(class_id))
        return school_class

    def _get_exam(self, school_id: int, class_id: int, exam_id: int) -> Exam:
        result = self.db.execute(
            select(Exam).where(
                Exam.id == exam_id,
                Exam.school_id == school_id,
                Exam.class_id == class_id,
            )
        )
        exam = result.scalar_one_or_none()
        if not exam:
            raise NotFoundError("Exam", str(exam_id))
        return exam

    def load_class(self, school: School, class_id: int, published_only: bool = False) -> ClassSnapshot:
        """Snapshot the roster, subjects and grades of a class.

        With ``published_only``, grades attached to unpublished exams are
        left out; grades entered without an exam are always kept.
        """
        school_class = self._get_class(school.id, class_id)

        students = self.db.execute(
            select(Student)
            .where(Student.school_id == school.id, Student.class_id == class_id)
            .order_by(Student.last_name, Student.first_name, Student.id)
        ).scalars().all()
        subjects = self.db.execute(
            select(Subject)
            .where(Subject.school_id == school.id, Subject.class_id == class_id)
            .order_by(Subject.name, Subject.id)
        ).scalars().all()

        query = (
            select(Grade)
            .join(Student, Grade.student_id == Student.id)
            .where(Grade.school_id == school.id, Student.class_id == class_id)
        )
        if published_only:
            query = query.outerjoin(Exam, Grade.exam_id == Exam.id).where(
                (Grade.exam_id.is_(None)) | (Exam.is_published.is_(True))
            )
        grades = self.db.execute(query.order_by(Grade.id)).scalars().all()

        for subject in subjects:
            coefficient = to_decimal(subject.coefficient)
            max_score = to_decimal(subject.max_score)
            if coefficient is None or coefficient <= 0 or max_score is None or max_score <= 0:
                logger.warning(
                    f"Subject {subject.id} ({subject.name}) has coefficient={subject.coefficient}, "
                    f"max_score={subject.max_score}; defaults will be used"
                )

        return ClassSnapshot(
            school=school,
            school_class=school_class,
            config=build_grading_config(school),
            students=[
                StudentSnapshot(
                    id=s.id,
                    first_name=s.first_name,
                    last_name=s.last_name,
                    matricule=s.matricule,
                )
                for s in students
            ],
            subjects=[
                SubjectSnapshot(
                    id=s.id,
                    name=s.name,
                    coefficient=s.coefficient,
                    max_score=s.max_score,
                )
                for s in subjects
            ],
            grades=[
                GradeSnapshot(
                    student_id=g.student_id,
                    subject_id=g.subject_id,
                    grade_value=g.grade_value,
                    max_grade=g.max_grade,
                    coefficient=g.coefficient,
                    exam_id=g.exam_id,
                    exam_type=g.exam_type,
                    semester=g.semester,
                    school_id=g.school_id,
                )
                for g in grades
            ],
        )

    def resolve_scope(
        self,
        school: School,
        class_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> Scope:
        """Scope for a request naming exactly one of an exam or a period."""
        self._get_class(school.id, class_id)
        if (exam_id is None) == (semester is None or not semester.strip()):
            raise ValidationError("Provide exactly one of exam_id or semester")

        if exam_id is not None:
            exam = self._get_exam(school.id, class_id, exam_id)
            if published_only and not exam.is_published:
                raise ResultsNotPublishedError(exam.id)
            return Scope.for_exam(exam.id, exam.title, exam.exam_type)

        system = school.period_system.value if school.period_system else settings.DEFAULT_PERIOD_SYSTEM
        parsed = parse_period(semester)
        if parsed is None or parsed[0] > period_count(system) or parsed[1] not in (None, system):
            raise ValidationError(
                f"Unknown period '{semester}'",
                details={"expected": [period_tag(i, system) for i in range(1, period_count(system) + 1)]},
            )
        return Scope.for_period(parsed[0], system)

    # ==========================================
    # Computation
    # ==========================================

    def compute(
        self,
        school: School,
        class_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> tuple[ClassSnapshot, ClassResults]:
        """Ranked results of a class for one exam or one period."""
        scope = self.resolve_scope(school, class_id, exam_id, semester, published_only)
        snapshot = self.load_class(school, class_id, published_only)
        results = compute_class_results(
            class_id,
            scope,
            snapshot.students,
            snapshot.subjects,
            snapshot.grades,
            snapshot.config,
        )
        logger.info(
            f"Results computed: class_id={class_id}, scope={scope.label!r}, "
            f"graded={results.total_students}/{len(snapshot.students)}"
        )
        return snapshot, results

    def compute_annual(self, school: School, class_id: int, published_only: bool = False) -> tuple[ClassSnapshot, AnnualResults]:
        """Period averages and annual ranking of a class."""
        snapshot = self.load_class(school, class_id, published_only)
        results = compute_annual_results(
            class_id,
            snapshot.students,
            snapshot.subjects,
            snapshot.grades,
            snapshot.config,
        )
        return snapshot, results

    def student_result(
        self,
        school: School,
        class_id: int,
        student_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> tuple[ClassSnapshot, ClassResults, StudentResult]:
        """One student's bulletin, ranked against the whole class."""
        snapshot, results = self.compute(school, class_id, exam_id, semester, published_only)
        result = results.get(student_id)
        if result is None:
            raise NotFoundError("Student", str(student_id))
        return snapshot, results, result

    # ==========================================
    # Responses
    # ==========================================

    def class_results_response(
        self,
        school: School,
        class_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> ClassResultsResponse:
        snapshot, results = self.compute(school, class_id, exam_id, semester, published_only)
        return self._to_response(snapshot, results)

    def student_result_response(
        self,
        school: School,
        class_id: int,
        student_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> StudentResultResponse:
        _, _, result = self.student_result(school, class_id, student_id, exam_id, semester, published_only)
        return StudentResultResponse.model_validate(result)

    def annual_results_response(self, school: School, class_id: int, published_only: bool = False) -> AnnualResultsResponse:
        snapshot, results = self.compute_annual(school, class_id, published_only)
        return AnnualResultsResponse.model_validate({
            "class_id": class_id,
            "class_name": snapshot.school_class.display_name,
            "period_system": snapshot.config.period_system,
            "results": results.results,
        })

    def _to_response(self, snapshot: ClassSnapshot, results: ClassResults) -> ClassResultsResponse:
        subject_names = {s.id: s.name for s in snapshot.subjects}
        stats = results.statistics
        scope = results.scope
        return ClassResultsResponse.model_validate({
            "class_id": results.class_id,
            "class_name": snapshot.school_class.display_name,
            "scope_label": scope.label,
            "composition_mode": scope.composition,
            "exam_id": scope.exam_id,
            "semester": None if scope.is_exam else period_tag(scope.period, snapshot.config.period_system),
            "total_students": results.total_students,
            "results": results.results,
            "statistics": ClassStatisticsResponse(
                graded_students=stats.graded_students,
                class_average=stats.class_average,
                highest_average=stats.highest_average,
                lowest_average=stats.lowest_average,
                pass_count=stats.pass_count,
                subject_averages=[
                    SubjectClassAverage(
                        subject_id=subject_id,
                        subject_name=subject_names.get(subject_id, ""),
                        average=average,
                    )
                    for subject_id, average in stats.subject_averages.items()
                ],
                appreciation_counts=stats.appreciation_counts,
            ),
        })

    # ==========================================
    # Excel Export
    # ==========================================

    def export_ranking(
        self,
        school: School,
        class_id: int,
        exam_id: int | None = None,
        semester: str | None = None,
        published_only: bool = False,
    ) -> bytes:
        """Class ranking as an Excel sheet: one row per student, one column per subject."""
        snapshot, results = self.compute(school, class_id, exam_id, semester, published_only)

        wb = Workbook()
        ws = wb.active
        ws.title = "Classement"

        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        center_align = Alignment(horizontal="center", vertical="center")

        headers = ["Rang", "Matricule", "Nom et prénoms"]
        headers += [
            f"{s.name} (coef {resolve_coefficient(s, snapshot.config).normalize():f})" for s in snapshot.subjects
        ]
        headers += ["Moyenne", "Appréciation"]

        title = f"{school.name} - {snapshot.school_class.display_name} - {results.scope.label}"
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
        title_cell = ws.cell(row=1, column=1, value=title)
        title_cell.font = Font(bold=True, size=14)
        title_cell.alignment = center_align

        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align

        for row_idx, result in enumerate(results.results, start=3):
            row = [
                result.rank if result.rank is not None else "-",
                result.matricule,
                result.student_name,
            ]
            for subject in snapshot.subjects:
                entry = result.subject(subject.id)
                row.append(float(entry.combined_avg) if entry else None)
            row.append(float(result.overall_average) if result.has_grades else None)
            row.append(result.appreciation)
            for col_idx, value in enumerate(row, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value).border = thin_border

        stats_row = len(results.results) + 4
        stats = results.statistics
        ws.cell(row=stats_row, column=1, value="Moyenne de la classe")
        ws.cell(row=stats_row, column=3, value=float(stats.class_average) if stats.class_average is not None else None)
        ws.cell(row=stats_row + 1, column=1, value="Admis")
        ws.cell(row=stats_row + 1, column=3, value=f"{stats.pass_count} / {stats.graded_students}")

        ws.column_dimensions["A"].width = 8
        ws.column_dimensions["B"].width = 15
        ws.column_dimensions["C"].width = 30
        for col_idx in range(4, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = 16

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output.getvalue()
