"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import engine
from app.core.exceptions import register_exception_handlers
from app.middleware.logging import RequestLoggingMiddleware

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Keep SQL echo and multipart parsing out of the request log
for noisy in ("sqlalchemy", "sqlalchemy.engine", "python_multipart", "python_multipart.multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

DESCRIPTION = """
Grades, class rankings and bulletins for French-speaking schools.

## Features

- **Grade Entry**: single, bulk and Excel grade sheets, checked against each subject's scale
- **Results**: weighted averages, class ranking and appreciations per exam or per period
- **Bulletins**: single-student, whole-class and annual PDF bulletins
- **Exports**: class ranking as Excel

## School Context

School-scoped endpoints require the `X-School-Id: <id>` header.

## Errors

Every error is returned as
`{"success": false, "error": {"code": ..., "message": ..., "details": {...}}}`.
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        f"Starting {settings.APP_NAME} v{settings.APP_VERSION} "
        f"(database={engine.url.get_backend_name()}, scale=/{settings.REFERENCE_SCALE:g}, "
        f"periods={settings.DEFAULT_PERIOD_SYSTEM}, grade scale from {settings.GRADE_SCALE_SOURCE})"
    )
    yield
    logger.info("Shutting down application")
    engine.dispose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=DESCRIPTION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
