"""Shared plumbing for the store adapters."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.exceptions import StoreUnavailableError

logger = structlog.get_logger()


class BaseStore:
    """Base class for adapters over an async database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def guard(self, operation: str) -> AsyncIterator[None]:
        """Translate database failures into StoreUnavailableError.

        The session is rolled back first so the caller can keep using it.
        """
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("store_unavailable", operation=operation, error=str(e))
            raise StoreUnavailableError(operation, e) from e
