"""Grade service for CRUD, bulk entry and Excel grade sheets."""

import logging
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.grading.numbers import to_decimal
from app.grading.periods import canonical_period
from app.models.exam import Exam
from app.models.grade import Grade
from app.models.school import School
from app.models.school_class import SchoolClass
from app.models.student import Student
from app.models.subject import Subject
from app.schemas.grade import (
    BulkGradeCreate,
    BulkGradeError,
    BulkGradeResponse,
    GradeCreate,
    GradeFilter,
    GradeResponse,
    GradeUpdate,
    GradeUploadError,
    GradeUploadResult,
)

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = ["Matricule", "Nom", "Prénom", "Note"]


def validate_grade_value(value: Decimal | None, max_grade: Decimal | None) -> None:
    """Reject scores that are negative or above the scale."""
    if max_grade is None or max_grade <= 0:
        raise ValidationError(f"Invalid max_grade ({max_grade}): must be greater than zero")
    if value is None:
        raise ValidationError("grade_value is required")
    if value < 0:
        raise ValidationError(f"grade_value ({value}) must not be negative")
    if value > max_grade:
        raise ValidationError(f"grade_value ({value}) exceeds max_grade ({max_grade})")


def normalize_exam_type(exam_type: str | None) -> str:
    return (exam_type or "devoir").strip().lower()


class GradeService:
    """Grade record management service."""

    def __init__(self, db: Session):
        self.db = db

    def _grade_to_response(self, grade: Grade) -> GradeResponse:
        """Convert Grade to response schema."""
        return GradeResponse.model_validate({
            "id": grade.id,
            "school_id": grade.school_id,
            "student_id": grade.student_id,
            "student_name": grade.student.full_name if grade.student else "",
            "subject_id": grade.subject_id,
            "subject_name": grade.subject.name if grade.subject else "",
            "exam_id": grade.exam_id,
            "grade_value": grade.grade_value,
            "max_grade": grade.max_grade,
            "coefficient": grade.coefficient,
            "exam_type": grade.exam_type,
            "semester": grade.semester,
            "created_at": grade.created_at,
            "updated_at": grade.updated_at,
        })

    # ==========================================
    # Lookups
    # ==========================================

    def _get_student(self, school_id: int, student_id: int) -> Student:
        result = self.db.execute(
            select(Student).where(Student.id == student_id, Student.school_id == school_id)
        )
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", str(student_id))
        return student

    def _get_subject(self, school_id: int, subject_id: int) -> Subject:
        result = self.db.execute(
            select(Subject).where(Subject.id == subject_id, Subject.school_id == school_id)
        )
        subject = result.scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        return subject

    def _get_exam(self, school_id: int, exam_id: int | None) -> Exam | None:
        if exam_id is None:
            return None
        result = self.db.execute(
            select(Exam).where(Exam.id == exam_id, Exam.school_id == school_id)
        )
        exam = result.scalar_one_or_none()
        if not exam:
            raise NotFoundError("Exam", str(exam_id))
        return exam

    def _get_class(self, school_id: int, class_id: int) -> SchoolClass:
        result = self.db.execute(
            select(SchoolClass).where(SchoolClass.id == class_id, SchoolClass.school_id == school_id)
        )
        school_class = result.scalar_one_or_none()
        if not school_class:
            raise NotFoundError("Class", str(class_id))
        return school_class

    def _get_existing_grade(
        self,
        school_id: int,
        student_id: int,
        subject_id: int,
        exam_id: int | None,
        semester: str | None,
        exam_type: str,
    ) -> Grade | None:
        """Find the grade sharing the upsert key (student, subject, exam, semester, exam_type)."""
        query = select(Grade).where(
            Grade.school_id == school_id,
            Grade.student_id == student_id,
            Grade.subject_id == subject_id,
            Grade.exam_type == exam_type,
        )
        query = query.where(Grade.exam_id.is_(None) if exam_id is None else Grade.exam_id == exam_id)
        query = query.where(Grade.semester.is_(None) if semester is None else Grade.semester == semester)
        return self.db.execute(query).scalars().first()

    def _subject_scale(self, subject: Subject) -> Decimal:
        max_score = to_decimal(subject.max_score)
        if max_score is None or max_score <= 0:
            return Decimal(str(settings.DEFAULT_MAX_SCORE))
        return max_score

    def _grade_scale(self, subject: Subject, max_grade: Decimal | None) -> Decimal:
        """Scale a score is checked against.

        Unless grades carry their own scale, they are read on the subject's
        max_score, so any other max_grade is refused.
        """
        scale = self._subject_scale(subject)
        if settings.GRADE_SCALE_SOURCE == "record":
            return max_grade or scale
        if max_grade is not None and max_grade != scale:
            raise ValidationError(
                f"max_grade ({max_grade}) differs from the scale of '{subject.name}' ({scale})",
                details={"subject_id": subject.id, "max_score": str(scale)},
            )
        return scale

    def _subject_coefficient(self, subject: Subject) -> Decimal:
        coefficient = to_decimal(subject.coefficient)
        if coefficient is None or coefficient <= 0:
            return Decimal(str(settings.DEFAULT_COEFFICIENT))
        return coefficient

    def _check_consistency(self, student: Student, subject: Subject, exam: Exam | None) -> None:
        if subject.class_id != student.class_id:
            raise ValidationError(
                f"Subject '{subject.name}' is not taught in the student's class",
                details={"student_id": student.id, "subject_id": subject.id},
            )
        if exam is not None and exam.class_id != student.class_id:
            raise ValidationError(
                f"Exam '{exam.title}' does not belong to the student's class",
                details={"student_id": student.id, "exam_id": exam.id},
            )

    # ==========================================
    # CRUD
    # ==========================================

    def _upsert(
        self,
        school: School,
        student: Student,
        subject: Subject,
        exam: Exam | None,
        grade_value: Decimal,
        max_grade: Decimal | None,
        coefficient: Decimal | None,
        exam_type: str,
        semester: str | None,
    ) -> Grade:
        max_grade = self._grade_scale(subject, max_grade)
        validate_grade_value(grade_value, max_grade)

        exam_type = normalize_exam_type(exam_type)
        if semester is None and exam is not None:
            semester = exam.semester
        semester = canonical_period(semester, school.period_system)

        grade = self._get_existing_grade(
            school.id, student.id, subject.id, exam.id if exam else None, semester, exam_type
        )
        if grade:
            grade.grade_value = grade_value
            grade.max_grade = max_grade
            if coefficient is not None:
                grade.coefficient = coefficient
        else:
            grade = Grade(
                school_id=school.id,
                student_id=student.id,
                subject_id=subject.id,
                exam_id=exam.id if exam else None,
                grade_value=grade_value,
                max_grade=max_grade,
                coefficient=coefficient or self._subject_coefficient(subject),
                exam_type=exam_type,
                semester=semester,
            )
            self.db.add(grade)
            # Visible to the next upsert lookup of the same key
            self.db.flush()
        return grade

    def create_grade(self, school: School, request: GradeCreate) -> GradeResponse:
        """Record a grade, replacing the one with the same key if it exists."""
        student = self._get_student(school.id, request.student_id)
        subject = self._get_subject(school.id, request.subject_id)
        exam = self._get_exam(school.id, request.exam_id)
        self._check_consistency(student, subject, exam)

        grade = self._upsert(
            school,
            student,
            subject,
            exam,
            grade_value=request.grade_value,
            max_grade=request.max_grade,
            coefficient=request.coefficient,
            exam_type=request.exam_type,
            semester=request.semester,
        )
        self.db.flush()
        self.db.refresh(grade)
        return self._grade_to_response(grade)

    def get_grade(self, school_id: int, grade_id: int) -> Grade:
        """Get grade by ID."""
        result = self.db.execute(
            select(Grade).where(Grade.id == grade_id, Grade.school_id == school_id)
        )
        grade = result.scalar_one_or_none()
        if not grade:
            raise NotFoundError("Grade", str(grade_id))
        return grade

    def get_grade_response(self, school_id: int, grade_id: int) -> GradeResponse:
        return self._grade_to_response(self.get_grade(school_id, grade_id))

    def update_grade(self, school_id: int, grade_id: int, request: GradeUpdate) -> GradeResponse:
        """Update a grade's value, scale or coefficient."""
        grade = self.get_grade(school_id, grade_id)
        update_data = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}

        if settings.GRADE_SCALE_SOURCE == "record":
            max_grade = update_data.get("max_grade", grade.max_grade)
        else:
            max_grade = self._grade_scale(grade.subject, update_data.get("max_grade"))
        validate_grade_value(update_data.get("grade_value", grade.grade_value), max_grade)
        update_data["max_grade"] = max_grade
        for field, value in update_data.items():
            setattr(grade, field, value)
        self.db.flush()
        self.db.refresh(grade)
        return self._grade_to_response(grade)

    def delete_grade(self, school_id: int, grade_id: int) -> None:
        """Delete a grade."""
        grade = self.get_grade(school_id, grade_id)
        self.db.delete(grade)
        self.db.flush()

    def list_grades(
        self,
        school: School,
        filters: GradeFilter | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> tuple[list[GradeResponse], int]:
        """List grades with filtering."""
        query = select(Grade).where(Grade.school_id == school.id)

        if filters:
            if filters.class_id:
                query = query.join(Student, Grade.student_id == Student.id).where(
                    Student.class_id == filters.class_id
                )
            if filters.student_id:
                query = query.where(Grade.student_id == filters.student_id)
            if filters.subject_id:
                query = query.where(Grade.subject_id == filters.subject_id)
            if filters.exam_id:
                query = query.where(Grade.exam_id == filters.exam_id)
            if filters.exam_type:
                query = query.where(Grade.exam_type == normalize_exam_type(filters.exam_type))
            if filters.semester:
                query = query.where(
                    Grade.semester == canonical_period(filters.semester, school.period_system)
                )

        # Count total
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar() or 0

        # Apply pagination and ordering
        query = (
            query
            .order_by(Grade.student_id, Grade.subject_id, Grade.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        grades = self.db.execute(query).scalars().all()
        return [self._grade_to_response(g) for g in grades], total

    # ==========================================
    # Bulk Operations
    # ==========================================

    def bulk_upsert(self, school: School, request: BulkGradeCreate) -> BulkGradeResponse:
        """Record one subject's grades for a whole class.

        Valid rows are saved even when other rows are rejected.
        """
        self._get_class(school.id, request.class_id)
        subject = self._get_subject(school.id, request.subject_id)
        exam = self._get_exam(school.id, request.exam_id)
        if subject.class_id != request.class_id:
            raise ValidationError(f"Subject '{subject.name}' is not taught in class {request.class_id}")
        if exam is not None and exam.class_id != request.class_id:
            raise ValidationError(f"Exam '{exam.title}' does not belong to class {request.class_id}")

        students = {
            s.id: s
            for s in self.db.execute(
                select(Student).where(
                    Student.school_id == school.id,
                    Student.class_id == request.class_id,
                )
            ).scalars().all()
        }

        errors: list[BulkGradeError] = []
        successful = 0
        for record in request.records:
            student = students.get(record.student_id)
            if not student:
                errors.append(BulkGradeError(
                    student_id=record.student_id,
                    message=f"Student ID {record.student_id} not found in class {request.class_id}",
                ))
                continue
            try:
                self._upsert(
                    school,
                    student,
                    subject,
                    exam,
                    grade_value=record.grade_value,
                    max_grade=request.max_grade,
                    coefficient=None,
                    exam_type=request.exam_type,
                    semester=request.semester,
                )
            except ValidationError as e:
                errors.append(BulkGradeError(student_id=record.student_id, message=e.message))
                continue
            successful += 1

        self.db.flush()
        logger.info(
            f"[GRADE BULK] class_id={request.class_id}, subject_id={subject.id}: "
            f"{successful} saved, {len(errors)} rejected"
        )

        return BulkGradeResponse(
            total_records=len(request.records),
            successful=successful,
            failed=len(errors),
            errors=errors,
            message=f"Successfully saved {successful} grades.",
        )

    # ==========================================
    # Template Generation
    # ==========================================

    def generate_template(
        self,
        school: School,
        class_id: int,
        subject_id: int,
        exam_id: int | None = None,
    ) -> bytes:
        """Generate the Excel grade sheet of one subject, pre-filled with the class roster."""
        school_class = self._get_class(school.id, class_id)
        subject = self._get_subject(school.id, subject_id)
        exam = self._get_exam(school.id, exam_id)
        students = self.db.execute(
            select(Student)
            .where(Student.school_id == school.id, Student.class_id == class_id)
            .order_by(Student.last_name, Student.first_name, Student.id)
        ).scalars().all()

        wb = Workbook()
        ws = wb.active
        ws.title = "Notes"

        # Styles
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        center_align = Alignment(horizontal="center", vertical="center")

        # Title row
        title_text = f"{school_class.display_name} - {subject.name} (/{self._subject_scale(subject).normalize():f})"
        if exam:
            title_text += f" - {exam.title}"
        ws.merge_cells("A1:D1")
        title_cell = ws.cell(row=1, column=1, value=title_text)
        title_cell.font = Font(bold=True, size=14)
        title_cell.alignment = center_align
        title_cell.fill = PatternFill(start_color="B4C6E7", end_color="B4C6E7", fill_type="solid")

        for col_idx, header in enumerate(TEMPLATE_HEADERS, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align

        for row_idx, student in enumerate(students, start=3):
            ws.cell(row=row_idx, column=1, value=student.matricule).border = thin_border
            ws.cell(row=row_idx, column=2, value=student.last_name).border = thin_border
            ws.cell(row=row_idx, column=3, value=student.first_name).border = thin_border
            ws.cell(row=row_idx, column=4, value=None).border = thin_border  # Note - to be filled

        for col, width in {"A": 15, "B": 25, "C": 25, "D": 10}.items():
            ws.column_dimensions[col].width = width

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output.getvalue()

    # ==========================================
    # Excel Upload Processing
    # ==========================================

    def process_excel_upload(
        self,
        school: School,
        file_content: bytes,
        class_id: int,
        subject_id: int,
        exam_id: int | None = None,
        exam_type: str = "devoir",
        semester: str | None = None,
    ) -> GradeUploadResult:
        """Import a filled grade sheet. Students are matched by matricule."""
        logger.info(
            f"[GRADE UPLOAD] Starting - school_id={school.id}, class_id={class_id}, "
            f"subject_id={subject_id}, file_size={len(file_content)} bytes"
        )

        try:
            wb = load_workbook(BytesIO(file_content), data_only=True)
            ws = wb.active
        except Exception as e:
            logger.error(f"[GRADE UPLOAD] Failed to load Excel: {str(e)}")
            raise ValidationError(f"Invalid Excel file: {str(e)}")

        self._get_class(school.id, class_id)
        subject = self._get_subject(school.id, subject_id)
        exam = self._get_exam(school.id, exam_id)
        if subject.class_id != class_id:
            raise ValidationError(f"Subject '{subject.name}' is not taught in class {class_id}")
        if exam is not None and exam.class_id != class_id:
            raise ValidationError(f"Exam '{exam.title}' does not belong to class {class_id}")

        students_by_matricule = {
            s.matricule.strip().upper(): s
            for s in self.db.execute(
                select(Student).where(Student.school_id == school.id, Student.class_id == class_id)
            ).scalars().all()
        }

        # Header row is the first row mentioning the matricule column
        header_row = None
        col_map: dict[str, int] = {}
        for row_num, row in enumerate(ws.iter_rows(min_row=1, max_row=5, values_only=True), start=1):
            headers = [str(v).strip().lower() if v is not None else "" for v in row]
            if "matricule" in headers:
                header_row = row_num
                for idx, header in enumerate(headers):
                    if header == "matricule":
                        col_map["matricule"] = idx
                    elif header in ("note", "grade", "grade_value"):
                        col_map["grade_value"] = idx
                break

        if header_row is None or "grade_value" not in col_map:
            raise ValidationError("Grade sheet must contain 'Matricule' and 'Note' columns")
        logger.info(f"[GRADE UPLOAD] Header row {header_row}, column mapping: {col_map}")

        errors: list[GradeUploadError] = []
        successful_rows = 0
        skipped_rows = 0

        for row_num, row in enumerate(ws.iter_rows(min_row=header_row + 1, values_only=True), start=header_row + 1):
            raw_matricule = row[col_map["matricule"]] if col_map["matricule"] < len(row) else None
            raw_value = row[col_map["grade_value"]] if col_map["grade_value"] < len(row) else None

            if raw_matricule is None or not str(raw_matricule).strip():
                skipped_rows += 1
                continue
            matricule = str(raw_matricule).strip()

            # Students without a score are left untouched
            if raw_value is None or not str(raw_value).strip():
                skipped_rows += 1
                continue

            student = students_by_matricule.get(matricule.upper())
            if not student:
                errors.append(GradeUploadError(
                    row=row_num,
                    matricule=matricule,
                    message=f"Student '{matricule}' not found in class",
                ))
                continue

            value = to_decimal(raw_value)
            if value is None:
                errors.append(GradeUploadError(
                    row=row_num,
                    matricule=matricule,
                    column="Note",
                    message=f"Invalid grade value: '{raw_value}'",
                ))
                continue

            try:
                self._upsert(
                    school,
                    student,
                    subject,
                    exam,
                    grade_value=value,
                    max_grade=None,
                    coefficient=None,
                    exam_type=exam_type,
                    semester=semester,
                )
            except ValidationError as e:
                errors.append(GradeUploadError(
                    row=row_num,
                    matricule=matricule,
                    column="Note",
                    message=e.message,
                ))
                continue
            successful_rows += 1

        self.db.flush()

        failed_rows = len(errors)
        total = successful_rows + failed_rows + skipped_rows
        logger.info(f"[GRADE UPLOAD] Completed: {successful_rows} OK, {failed_rows} failed, {skipped_rows} skipped")

        return GradeUploadResult(
            total_rows=total,
            successful_rows=successful_rows,
            failed_rows=failed_rows,
            skipped_rows=skipped_rows,
            errors=errors,
            message=f"Processed {successful_rows} grades successfully.",
        )
