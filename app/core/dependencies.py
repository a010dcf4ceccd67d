"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.models.school import School


class CurrentSchoolContext:
    """Context object containing the school (tenant) a request acts on."""

    def __init__(self, school: School):
        self.school = school

    @property
    def school_id(self) -> int:
        return self.school.id


def get_school_context(
    db: Annotated[Session, Depends(get_db)],
    x_school_id: str = Header(..., description="School ID"),
) -> CurrentSchoolContext:
    """Resolve the school named by the X-School-Id header."""
    try:
        school_id = int(x_school_id)
    except ValueError:
        raise NotFoundError("School", x_school_id)

    result = db.execute(select(School).where(School.id == school_id))
    school = result.scalar_one_or_none()

    if not school:
        raise NotFoundError("School", x_school_id)

    return CurrentSchoolContext(school=school)


# Type alias for dependency injection
SchoolContext = Annotated[CurrentSchoolContext, Depends(get_school_context)]
