"""Grade schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from app.schemas.common import BaseSchema


# ==========================================
# Grade Record Schemas
# ==========================================

class GradeCreate(BaseSchema):
    """Single grade creation schema.

    max_grade and coefficient default to the subject's values, semester to
    the exam's semester.
    """

    student_id: int
    subject_id: int
    exam_id: int | None = None
    grade_value: Decimal = Field(..., ge=0, max_digits=6, decimal_places=2)
    max_grade: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    coefficient: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    exam_type: str = Field("devoir", min_length=1, max_length=50)
    semester: str | None = Field(None, max_length=30)


class GradeUpdate(BaseSchema):
    """Grade update schema."""

    grade_value: Decimal | None = Field(None, ge=0, max_digits=6, decimal_places=2)
    max_grade: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    coefficient: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)


class GradeResponse(BaseSchema):
    """Grade response schema."""

    id: int
    school_id: int
    student_id: int
    student_name: str
    subject_id: int
    subject_name: str
    exam_id: int | None
    grade_value: Decimal
    max_grade: Decimal
    coefficient: Decimal
    exam_type: str
    semester: str | None
    created_at: datetime
    updated_at: datetime


class GradeFilter(BaseSchema):
    """Grade filtering options."""

    class_id: int | None = None
    student_id: int | None = None
    subject_id: int | None = None
    exam_id: int | None = None
    exam_type: str | None = None
    semester: str | None = None


# ==========================================
# Bulk Grade Operations
# ==========================================

class BulkGradeEntry(BaseSchema):
    """Single student grade for bulk entry."""

    student_id: int
    grade_value: Decimal = Field(..., ge=0, max_digits=6, decimal_places=2)


class BulkGradeCreate(BaseSchema):
    """Grades of one subject for a whole class."""

    class_id: int
    subject_id: int
    exam_id: int | None = None
    exam_type: str = Field("devoir", min_length=1, max_length=50)
    semester: str | None = Field(None, max_length=30)
    max_grade: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    records: list[BulkGradeEntry]


class BulkGradeError(BaseSchema):
    """Error detail for one rejected bulk entry."""

    student_id: int
    message: str


class BulkGradeResponse(BaseSchema):
    """Response for bulk grade operations."""

    total_records: int
    successful: int
    failed: int
    errors: list[BulkGradeError] = []
    message: str


# ==========================================
# Excel Upload
# ==========================================

class GradeUploadError(BaseSchema):
    """Error detail for grade upload."""

    row: int
    matricule: str | None = None
    column: str | None = None
    message: str


class GradeUploadResult(BaseSchema):
    """Result of grade Excel upload processing."""

    total_rows: int
    successful_rows: int
    failed_rows: int
    skipped_rows: int = 0
    errors: list[GradeUploadError] = []
    message: str
