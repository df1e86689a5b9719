"""
Pytest configuration and shared fixtures for taskhub tests.

Testing Standards:
- All async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Each test gets a fresh in-memory SQLite database via aiosqlite
- Use AsyncMock for failure injection into services
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from taskhub.config import Settings
from taskhub.db.base import Base
from taskhub.models import Project, Task  # registers every model on Base.metadata


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def settings() -> Settings:
    """Inline reconciliation, notifications on."""
    return Settings(reconcile_in_background=False, notify_on_status_change=True)


@pytest.fixture
def make_project(db: AsyncSession) -> Callable[..., Awaitable[Project]]:
    async def _make(
        name: str = "Launch",
        status: str = "in_progress",
        prep_date: date | None = None,
        return_date: date | None = None,
        **fields,
    ) -> Project:
        project = Project(
            name=name,
            status=status,
            prep_date=prep_date,
            return_date=return_date,
            **fields,
        )
        db.add(project)
        await db.commit()
        await db.refresh(project)
        return project

    return _make


@pytest.fixture
def make_task(db: AsyncSession) -> Callable[..., Awaitable[Task]]:
    async def _make(
        title: str = "Ship logo",
        status: str = "not_started",
        project: Project | None = None,
        **fields,
    ) -> Task:
        task = Task(
            title=title,
            status=status,
            project_id=project.id if project else None,
            **fields,
        )
        db.add(task)
        await db.commit()
        await db.refresh(task)
        return task

    return _make
