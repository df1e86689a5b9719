"""Tasks API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.session import get_db_session
from taskhub.models.project import Task
from taskhub.schemas import TaskCreate, TaskResponse, TaskUpdate
from taskhub.services.task import TaskService

router = APIRouter()


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Create a new task."""
    service = TaskService(db)
    return await service.create_task(task_data)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Get a task by ID."""
    service = TaskService(db)
    return await service.get_task(task_id)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    task_data: TaskUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Update a task. Status or project changes reconcile the affected projects."""
    service = TaskService(db)
    return await service.update_task(task_id, task_data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Delete a task."""
    service = TaskService(db)
    await service.remove_task(task_id)
