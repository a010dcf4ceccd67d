"""Student schemas."""

from datetime import date

from pydantic import Field

from app.schemas.common import BaseSchema, PaginatedResponse, TimestampSchema


class StudentBase(BaseSchema):
    """Base student schema."""

    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    date_of_birth: date | None = None
    place_of_birth: str | None = Field(None, max_length=120)
    parent_name: str | None = Field(None, max_length=255)
    parent_phone_no: str | None = Field(None, max_length=50)


class StudentCreate(StudentBase):
    """Student creation schema.

    The matricule may be left empty when the school generates matricules.
    """

    class_id: int
    matricule: str | None = Field(None, min_length=1, max_length=50)


class StudentUpdate(BaseSchema):
    """Student update schema."""

    class_id: int | None = None
    matricule: str | None = Field(None, min_length=1, max_length=50)
    first_name: str | None = Field(None, min_length=1, max_length=120)
    last_name: str | None = Field(None, min_length=1, max_length=120)
    date_of_birth: date | None = None
    place_of_birth: str | None = Field(None, max_length=120)
    parent_name: str | None = Field(None, max_length=255)
    parent_phone_no: str | None = Field(None, max_length=50)


class StudentResponse(StudentBase, TimestampSchema):
    """Student response schema."""

    id: int
    school_id: int
    class_id: int
    matricule: str
    full_name: str


class StudentFilter(BaseSchema):
    """Student filter options."""

    class_id: int | None = None
    search: str | None = None  # Search by name or matricule


class PaginatedStudentResponse(PaginatedResponse):
    """Paginated student list."""

    items: list[StudentResponse]
