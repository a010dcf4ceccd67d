"""Exam schemas."""

from datetime import date

from pydantic import Field

from app.schemas.common import BaseSchema, TimestampSchema


class ExamBase(BaseSchema):
    """Base exam schema."""

    title: str = Field(..., min_length=1, max_length=255)
    exam_type: str | None = Field(None, max_length=50, description="e.g. 'Composition', 'Devoir'")
    semester: str | None = Field(None, max_length=30, description="e.g. '1er_semestre', 'S2', 'T1'")
    exam_date: date
    description: str | None = None


class ExamCreate(ExamBase):
    """Exam creation schema."""

    class_id: int


class ExamUpdate(BaseSchema):
    """Exam update schema."""

    title: str | None = Field(None, min_length=1, max_length=255)
    exam_type: str | None = Field(None, max_length=50)
    semester: str | None = Field(None, max_length=30)
    exam_date: date | None = None
    description: str | None = None


class ExamResponse(ExamBase, TimestampSchema):
    """Exam response schema."""

    id: int
    school_id: int
    class_id: int
    is_published: bool
    is_composition: bool


class ExamFilter(BaseSchema):
    """Exam filtering options."""

    class_id: int | None = None
    semester: str | None = None
    is_published: bool | None = None
    date_from: date | None = None
    date_to: date | None = None
