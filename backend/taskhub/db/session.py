"""Engine and session factory shared by the API and the Celery worker."""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from taskhub.config import Settings, get_settings

logger = structlog.get_logger()
settings = get_settings()


def engine_options(settings: Settings) -> dict[str, Any]:
    """Pool sizing applies to server databases only."""
    options: dict[str, Any] = {"echo": settings.debug}
    if not settings.uses_sqlite:
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

# Services commit every write themselves; nothing is expired on commit so
# returned rows stay readable after the request's last commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def init_db() -> None:
    """Check that the database answers before serving requests."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    logger.info("database_ready", sqlite=settings.uses_sqlite)


async def close_db() -> None:
    await engine.dispose()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request, rolled back if the handler raises."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def worker_session() -> AsyncIterator[AsyncSession]:
    """
    Session for code run under asyncio.run, such as Celery tasks.

    Pooled connections are bound to the event loop that opened them, and
    every asyncio.run starts a new loop. The engine here keeps no pool and
    is disposed before the loop closes.
    """
    worker_engine = create_async_engine(
        settings.database_url, echo=settings.debug, poolclass=NullPool
    )
    factory = async_sessionmaker(
        worker_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    try:
        async with factory() as session:
            yield session
    finally:
        await worker_engine.dispose()
