"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from taskhub.api import router as api_router
from taskhub.config import get_settings
from taskhub.db.session import close_db, init_db
from taskhub.exceptions import (
    InvalidStatusTransitionError,
    InvariantViolationError,
    NotFoundError,
    StoreUnavailableError,
    TaskhubError,
)
from taskhub.middleware.logging import RequestLoggingMiddleware

logger = structlog.get_logger()
settings = get_settings()

# Domain errors and the HTTP status each maps to
ERROR_STATUS_CODES: dict[type[TaskhubError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStatusTransitionError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvariantViolationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Check the database on startup and release the pool on shutdown."""
    logger.info(
        "app_starting",
        version=settings.app_version,
        environment=settings.environment,
        reconcile_in_background=settings.reconcile_in_background,
    )
    await init_db()

    yield

    await close_db()
    logger.info("app_stopped")


async def taskhub_error_handler(request: Request, exc: TaskhubError) -> ORJSONResponse:
    """Render a domain error as JSON with a matching status code."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    if status_code >= 500:
        logger.error("request_error", code=exc.code, error=exc.message)
    return ORJSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Task and project tracking with blocker propagation",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Add middleware (order matters - last added is first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(TaskhubError, taskhub_error_handler)

    # Include API router
    app.include_router(api_router, prefix=settings.api_prefix)

    return app


app = create_app()
