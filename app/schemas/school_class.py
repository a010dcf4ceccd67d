"""School class schemas."""

from pydantic import Field

from app.schemas.common import BaseSchema, TimestampSchema


class SchoolClassBase(BaseSchema):
    """Base class schema."""

    name: str = Field(..., min_length=1, max_length=100)
    level: str | None = Field(None, max_length=50)
    section: str | None = Field(None, max_length=50)
    academic_year: str | None = Field(None, pattern=r"^\d{4}-\d{4}$")


class SchoolClassCreate(SchoolClassBase):
    """Class creation schema."""

    pass


class SchoolClassUpdate(BaseSchema):
    """Class update schema."""

    name: str | None = Field(None, min_length=1, max_length=100)
    level: str | None = Field(None, max_length=50)
    section: str | None = Field(None, max_length=50)
    academic_year: str | None = Field(None, pattern=r"^\d{4}-\d{4}$")


class SchoolClassResponse(SchoolClassBase, TimestampSchema):
    """Class response schema."""

    id: int
    school_id: int
    display_name: str
    student_count: int = 0
