"""Version 1 API router."""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    classes,
    exams,
    grades,
    results,
    schools,
    students,
    subjects,
)
from app.schemas.common import ErrorResponse

# Documented error envelope of school-scoped routes
SCHOOL_SCOPED_ERRORS = {
    404: {"model": ErrorResponse, "description": "School or record not found"},
    422: {"model": ErrorResponse, "description": "Invalid request or grade data"},
}

api_router = APIRouter()

# Registration needs no school context; /schools/current does
api_router.include_router(
    schools.router,
    prefix="/schools",
    tags=["Schools"],
)

# Rosters
api_router.include_router(
    classes.router,
    prefix="/classes",
    tags=["Classes"],
    responses=SCHOOL_SCOPED_ERRORS,
)
api_router.include_router(
    students.router,
    prefix="/students",
    tags=["Students"],
    responses=SCHOOL_SCOPED_ERRORS,
)
api_router.include_router(
    subjects.router,
    prefix="/subjects",
    tags=["Subjects"],
    responses=SCHOOL_SCOPED_ERRORS,
)

# Grade entry
api_router.include_router(
    exams.router,
    prefix="/exams",
    tags=["Exams"],
    responses=SCHOOL_SCOPED_ERRORS,
)
api_router.include_router(
    grades.router,
    prefix="/grades",
    tags=["Grades"],
    responses={**SCHOOL_SCOPED_ERRORS, 400: {"model": ErrorResponse, "description": "Rejected upload"}},
)

# Results, bulletins and rankings
api_router.include_router(
    results.router,
    prefix="/results",
    tags=["Results"],
    responses={
        **SCHOOL_SCOPED_ERRORS,
        403: {"model": ErrorResponse, "description": "Exam results not published"},
    },
)
