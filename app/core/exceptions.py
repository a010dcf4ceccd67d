"""Application exceptions and the JSON error envelope."""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Standard error envelope returned by every failing endpoint."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
    }


class AppException(HTTPException):
    """Base application exception.

    Subclasses set ``status_code``, ``code`` and ``default_message``.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "Bad request"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(
            status_code=self.status_code,
            detail=error_body(self.code, self.message, self.details),
        )


class ForbiddenError(AppException):
    """The resource exists but may not be accessed."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "Forbidden"


class ResultsNotPublishedError(ForbiddenError):
    """Exam results requested before the exam was published."""

    code = "RESULTS_NOT_PUBLISHED"
    default_message = "Results for this exam have not been published yet."

    def __init__(self, exam_id: int | None = None):
        super().__init__(details={"exam_id": exam_id} if exam_id is not None else None)


class ValidationError(AppException):
    """Data validation failed."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"
    default_message = "Validation error"


class UploadError(AppException):
    """File upload failed."""

    code = "UPLOAD_FAILED"
    default_message = "Upload failed"


class NotFoundError(AppException):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
    ):
        super().__init__(
            message=f"{resource} not found",
            details={"identifier": identifier} if identifier else None,
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error with the standard envelope."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                {"errors": jsonable_encoder(exc.errors())},
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("INTERNAL_ERROR", "An internal server error occurred"),
        )
