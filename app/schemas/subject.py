"""Subject schemas."""

from decimal import Decimal

from pydantic import Field

from app.schemas.common import BaseSchema, TimestampSchema


class SubjectBase(BaseSchema):
    """Base subject schema."""

    name: str = Field(..., min_length=1, max_length=100)
    abbreviation: str | None = Field(None, max_length=20)
    coefficient: Decimal = Field(Decimal("1"), gt=0, max_digits=6, decimal_places=2)
    max_score: Decimal = Field(Decimal("20"), gt=0, max_digits=6, decimal_places=2)


class SubjectCreate(SubjectBase):
    """Subject creation schema."""

    class_id: int


class SubjectUpdate(BaseSchema):
    """Subject update schema."""

    name: str | None = Field(None, min_length=1, max_length=100)
    abbreviation: str | None = Field(None, max_length=20)
    coefficient: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)
    max_score: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)


class SubjectResponse(TimestampSchema):
    """Subject response schema.

    coefficient and max_score may be empty on rows imported from older data.
    """

    id: int
    school_id: int
    class_id: int
    name: str
    abbreviation: str | None
    coefficient: Decimal | None
    max_score: Decimal | None
