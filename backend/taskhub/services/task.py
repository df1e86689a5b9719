"""Task mutations and the project reconciliation they trigger."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings, get_settings
from taskhub.exceptions import InvalidStatusTransitionError, NotFoundError
from taskhub.models.project import EntityRef, EntityType, Task, TaskStatus
from taskhub.schemas import TaskCreate, TaskUpdate
from taskhub.services.hooks import StatusChangeHooks
from taskhub.services.project_status import EffectiveStatusFn, compute_effective_status
from taskhub.services.reconciliation import ProjectReconciler
from taskhub.stores.entities import EntityStatusStore

logger = structlog.get_logger()

# Fields whose changes are recorded in the activity log
TRACKED_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "project_id",
    "assignee_id",
    "due_date",
)


class TaskService:
    """
    Create, update and delete tasks.

    Any change to a task's status or project re-evaluates the affected
    projects: on a move both the old and the new parent are reconciled.
    """

    def __init__(
        self,
        db: AsyncSession,
        effective_status: EffectiveStatusFn = compute_effective_status,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.entities = EntityStatusStore(db)
        self.hooks = StatusChangeHooks(db, self.settings)
        self.reconciler = ProjectReconciler(
            db,
            effective_status=effective_status,
            hooks=self.hooks,
            settings=self.settings,
        )

    async def get_task(self, task_id: UUID) -> Task:
        """
        Raises:
            NotFoundError: if the task does not exist
        """
        async with self.entities.guard("get_task"):
            result = await self.db.execute(
                select(Task)
                .where(Task.id == task_id)
                .execution_options(populate_existing=True)
            )
            task = result.scalar_one_or_none()

        if task is None:
            raise NotFoundError(EntityType.TASK.value, task_id)
        return task

    async def create_task(self, data: TaskCreate, actor_id: UUID | None = None) -> Task:
        """Create a task and reconcile its project, if it has one."""
        task = Task(**data.model_dump())
        async with self.entities.guard("create_task"):
            self.db.add(task)
            await self.db.commit()
            await self.db.refresh(task)

        # Hooks may roll the session back, which expires loaded rows
        task_id, project_id = task.id, task.project_id
        logger.info(
            "task_created",
            task_id=str(task_id),
            project_id=str(project_id) if project_id else None,
        )
        await self.hooks.record_activity(
            EntityType.TASK.value,
            task_id,
            "create",
            f"Created task: {task.title}",
            actor_id=actor_id,
        )

        if project_id is not None:
            await self.reconciler.request_reconciliation(project_id, actor_id=actor_id)
        return await self.get_task(task_id)

    async def update_task(
        self,
        task_id: UUID,
        data: TaskUpdate,
        actor_id: UUID | None = None,
    ) -> Task:
        """
        Apply field changes to a task.

        Raises:
            NotFoundError: if the task does not exist
            InvalidStatusTransitionError: if the task is blocked and a status
                change is requested
        """
        task = await self.get_task(task_id)
        update_data = data.model_dump(exclude_unset=True)

        changes: dict[str, dict[str, Any]] = {}
        for field in TRACKED_FIELDS:
            if field in update_data and getattr(task, field) != update_data[field]:
                changes[field] = {"from": getattr(task, field), "to": update_data[field]}

        if not changes:
            return task

        if "status" in changes and task.status == TaskStatus.BLOCKED.value:
            raise InvalidStatusTransitionError(
                EntityType.TASK.value, task_id, task.status, update_data["status"]
            )

        old_status = task.status
        old_project_id = task.project_id

        async with self.entities.guard("update_task"):
            for field, value in update_data.items():
                setattr(task, field, value)
            await self.db.commit()
            await self.db.refresh(task)
        new_status, new_project_id = task.status, task.project_id

        logger.info("task_updated", task_id=str(task_id), fields=sorted(changes))

        if "status" in changes:
            await self.hooks.on_status_change(
                EntityRef.task(task_id),
                old_status,
                new_status,
                actor_id=actor_id,
                changes=changes,
            )
        else:
            await self.hooks.record_activity(
                EntityType.TASK.value,
                task_id,
                "update",
                f"Updated task: {', '.join(changes)}",
                changes=changes,
                actor_id=actor_id,
            )

        if "status" in changes or "project_id" in changes:
            for project_id in dict.fromkeys([old_project_id, new_project_id]):
                if project_id is not None:
                    await self.reconciler.request_reconciliation(project_id, actor_id=actor_id)

        return await self.get_task(task_id)

    async def remove_task(self, task_id: UUID, actor_id: UUID | None = None) -> None:
        """
        Delete a task and reconcile the project it belonged to.

        Raises:
            NotFoundError: if the task does not exist
        """
        task = await self.get_task(task_id)
        project_id = task.project_id
        title = task.title

        async with self.entities.guard("delete_task"):
            await self.db.delete(task)
            await self.db.commit()

        logger.info("task_deleted", task_id=str(task_id))
        await self.hooks.record_activity(
            EntityType.TASK.value,
            task_id,
            "delete",
            f"Deleted task: {title}",
            actor_id=actor_id,
        )

        if project_id is not None:
            await self.reconciler.request_reconciliation(project_id, actor_id=actor_id)

    async def archive_task(self, task_id: UUID, actor_id: UUID | None = None) -> Task:
        return await self.update_task(
            task_id, TaskUpdate(status=TaskStatus.ARCHIVED.value), actor_id=actor_id
        )

    async def unarchive_task(self, task_id: UUID, actor_id: UUID | None = None) -> Task:
        return await self.update_task(
            task_id, TaskUpdate(status=TaskStatus.IN_PROGRESS.value), actor_id=actor_id
        )
