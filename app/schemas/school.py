"""School schemas."""

from pydantic import Field

from app.models.school import PeriodSystem
from app.schemas.common import BaseSchema, TimestampSchema


class SchoolBase(BaseSchema):
    """Base school schema."""

    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=2, max_length=100, pattern=r"^[a-z0-9-]+$")
    academic_year: str | None = Field(None, pattern=r"^\d{4}-\d{4}$")
    address: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    period_system: PeriodSystem = PeriodSystem.SEMESTRE
    strict_semester_match: bool = False
    student_matricule_prefix: str = Field("ELEVE", min_length=1, max_length=20)
    auto_generate_matricule: bool = True


class SchoolCreate(SchoolBase):
    """School creation schema."""

    pass


class SchoolUpdate(BaseSchema):
    """School settings update schema."""

    name: str | None = Field(None, min_length=2, max_length=255)
    academic_year: str | None = Field(None, pattern=r"^\d{4}-\d{4}$")
    address: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    period_system: PeriodSystem | None = None
    strict_semester_match: bool | None = None
    student_matricule_prefix: str | None = Field(None, min_length=1, max_length=20)
    auto_generate_matricule: bool | None = None


class SchoolResponse(SchoolBase, TimestampSchema):
    """School response schema."""

    id: int
