"""Project creation, archiving and explicit reconciliation."""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings, get_settings
from taskhub.exceptions import NotFoundError
from taskhub.models.project import EntityRef, EntityType, Project, ProjectStatus
from taskhub.schemas import ProjectCreate
from taskhub.services.hooks import StatusChangeHooks
from taskhub.services.project_status import EffectiveStatusFn, compute_effective_status
from taskhub.services.reconciliation import ProjectReconciler
from taskhub.stores.entities import EntityStatusStore

logger = structlog.get_logger()


class ProjectService:
    """Service for project lifecycle operations."""

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

    async def create_project(
        self, data: ProjectCreate, actor_id: UUID | None = None
    ) -> Project:
        project = Project(**data.model_dump())
        async with self.entities.guard("create_project"):
            self.db.add(project)
            await self.db.commit()
            await self.db.refresh(project)

        project_id = project.id
        logger.info("project_created", project_id=str(project_id))
        await self.hooks.record_activity(
            EntityType.PROJECT.value,
            project_id,
            "create",
            f"Created project: {project.name}",
            actor_id=actor_id,
        )
        return await self.get_project(project_id)

    async def get_project(self, project_id: UUID) -> Project:
        """
        Raises:
            NotFoundError: if the project does not exist
        """
        project = await self.entities.get_project(project_id)
        if project is None:
            raise NotFoundError(EntityType.PROJECT.value, project_id)
        return project

    async def reconcile(self, project_id: UUID, actor_id: UUID | None = None) -> Project:
        """
        Re-derive a project's blocked state now, inline.

        Unlike the follow-up reconciliation done after task and blocker
        changes, errors propagate to the caller.
        """
        await self.get_project(project_id)
        await self.reconciler.reevaluate_project_blocked_state(project_id, actor_id=actor_id)
        return await self.get_project(project_id)

    async def archive_project(
        self, project_id: UUID, actor_id: UUID | None = None
    ) -> Project:
        """Archive a project. Reconciliation leaves archived projects alone."""
        return await self._set_manual_status(
            project_id, ProjectStatus.ARCHIVED.value, actor_id
        )

    async def unarchive_project(
        self, project_id: UUID, actor_id: UUID | None = None
    ) -> Project:
        """Restore an archived project to in_progress, then reconcile it."""
        await self._set_manual_status(
            project_id, ProjectStatus.IN_PROGRESS.value, actor_id
        )
        await self.reconciler.request_reconciliation(project_id, actor_id=actor_id)
        return await self.get_project(project_id)

    async def _set_manual_status(
        self, project_id: UUID, status: str, actor_id: UUID | None
    ) -> Project:
        ref = EntityRef.project(project_id)
        old_status = await self.entities.get_status(ref)
        if await self.entities.set_status(ref, status):
            logger.info(
                "project_status_set",
                project_id=str(project_id),
                from_status=old_status,
                to_status=status,
            )
            await self.hooks.on_status_change(ref, old_status, status, actor_id=actor_id)
        return await self.get_project(project_id)
