"""Status reads and writes for tasks and projects."""

from uuid import UUID

from sqlalchemy import select, update

from taskhub.exceptions import InvariantViolationError, NotFoundError
from taskhub.models.project import (
    EntityRef,
    EntityType,
    Project,
    Task,
    TaskStatus,
)
from taskhub.stores.base import BaseStore


def model_for(entity_type: EntityType) -> type[Task] | type[Project]:
    """Map an entity type to its model class."""
    if entity_type is EntityType.TASK:
        return Task
    if entity_type is EntityType.PROJECT:
        return Project
    raise InvariantViolationError(f"Unknown entity type: {entity_type!r}")


class EntityStatusStore(BaseStore):
    """Typed status access for Task and Project rows."""

    async def get_status(self, entity: EntityRef) -> str:
        """Current status of a task or project.

        Raises:
            NotFoundError: if the entity does not exist
        """
        model = model_for(entity.type)
        async with self.guard("get_entity_status"):
            result = await self.db.execute(
                select(model.status).where(model.id == entity.id)
            )
            current = result.scalar_one_or_none()

        if current is None:
            raise NotFoundError(entity.type.value, entity.id)
        return current

    async def set_status(
        self,
        entity: EntityRef,
        status: str,
        unless_in: frozenset[str] | None = None,
    ) -> bool:
        """
        Write an entity's status and commit.

        Re-applying the current status issues no change, so repeated calls
        are harmless.

        Args:
            entity: Task or project to update
            status: New status value
            unless_in: Leave the row untouched if its stored status is one of these

        Returns:
            True if the stored status changed

        Raises:
            NotFoundError: if the entity does not exist
        """
        model = model_for(entity.type)
        stmt = update(model).where(model.id == entity.id, model.status != status)
        if unless_in:
            stmt = stmt.where(model.status.not_in(sorted(unless_in)))

        async with self.guard("set_entity_status"):
            result = await self.db.execute(stmt.values(status=status))
            await self.db.commit()
            if result.rowcount:
                return True

            exists = await self.db.scalar(select(model.id).where(model.id == entity.id))

        if exists is None:
            raise NotFoundError(entity.type.value, entity.id)
        return False

    async def get_task_project_id(self, task_id: UUID) -> UUID | None:
        """Parent project of a task, or None for a standalone task.

        Raises:
            NotFoundError: if the task does not exist
        """
        async with self.guard("get_task_project"):
            result = await self.db.execute(
                select(Task.id, Task.project_id).where(Task.id == task_id)
            )
            row = result.one_or_none()

        if row is None:
            raise NotFoundError(EntityType.TASK.value, task_id)
        return row.project_id

    async def get_task(self, task_id: UUID) -> Task | None:
        async with self.guard("get_task"):
            result = await self.db.execute(
                select(Task)
                .where(Task.id == task_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_project(self, project_id: UUID) -> Project | None:
        # populate_existing so a reconciliation always sees the stored row,
        # not a copy cached earlier in the session
        async with self.guard("get_project"):
            result = await self.db.execute(
                select(Project)
                .where(Project.id == project_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def list_non_archived_tasks(self, project_id: UUID) -> list[Task]:
        """All tasks of a project except archived ones."""
        async with self.guard("list_project_tasks"):
            result = await self.db.execute(
                select(Task)
                .where(
                    Task.project_id == project_id,
                    Task.status != TaskStatus.ARCHIVED.value,
                )
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())

    async def list_blocked_tasks(self, project_id: UUID) -> list[Task]:
        """Blocked, non-archived tasks of a project."""
        async with self.guard("list_blocked_tasks"):
            result = await self.db.execute(
                select(Task)
                .where(
                    Task.project_id == project_id,
                    Task.status == TaskStatus.BLOCKED.value,
                )
                .execution_options(populate_existing=True)
            )
            return list(result.scalars().all())
