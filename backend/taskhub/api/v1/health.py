"""Health check endpoints."""

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import get_settings
from taskhub.db.session import get_db_session

router = APIRouter()
logger = structlog.get_logger()
settings = get_settings()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness: the process is up."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "reconciliation": "background" if settings.reconcile_in_background else "inline",
    }


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db_session)) -> ORJSONResponse:
    """Readiness: the database answers. Responds 503 otherwise."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("readiness_check_failed", error=str(e))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": str(e)},
        )
    return ORJSONResponse(content={"status": "healthy", "database": "healthy"})
