"""Project blocked-state reconciliation.

A project's blocked state is never tracked incrementally. Every trigger
re-derives it from the project's own active blockers and its child tasks, so
repeated or concurrent runs against the same data converge on one answer.
"""

from typing import Iterable
from uuid import UUID

import structlog
from kombu.exceptions import OperationalError as BrokerUnavailableError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings, get_settings
from taskhub.exceptions import InvariantViolationError, TaskhubError
from taskhub.models.project import (
    TERMINAL_PROJECT_STATUSES,
    Blocker,
    EntityRef,
    EntityType,
    Project,
    ProjectStatus,
    Task,
    TaskStatus,
)
from taskhub.services.hooks import StatusChangeHooks
from taskhub.services.project_status import EffectiveStatusFn, compute_effective_status
from taskhub.stores.blockers import BlockerStore
from taskhub.stores.entities import EntityStatusStore

logger = structlog.get_logger()


def compute_project_blocked(
    project: Project,
    active_project_blockers: Iterable[Blocker],
    child_tasks: Iterable[Task],
) -> bool:
    """
    Decide whether a project must be blocked.

    True when an active blocker targets the project itself, or when any
    non-archived child task is blocked. Rows that do not belong to this
    project are ignored.
    """
    for blocker in active_project_blockers:
        if (
            blocker.is_active
            and blocker.entity_type == EntityType.PROJECT.value
            and blocker.entity_id == project.id
        ):
            return True

    return any(
        task.status == TaskStatus.BLOCKED.value
        for task in child_tasks
        if task.project_id == project.id and task.status != TaskStatus.ARCHIVED.value
    )


class ProjectReconciler:
    """Applies the derived blocked state to a project."""

    def __init__(
        self,
        db: AsyncSession,
        effective_status: EffectiveStatusFn = compute_effective_status,
        hooks: StatusChangeHooks | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.effective_status = effective_status
        self.entities = EntityStatusStore(db)
        self.blockers = BlockerStore(db)
        self.hooks = hooks or StatusChangeHooks(db, self.settings)

    async def reevaluate_project_blocked_state(
        self, project_id: UUID, actor_id: UUID | None = None
    ) -> str | None:
        """
        Recompute and store a project's blocked state.

        Archived and completed projects are left alone, as are missing ones.

        Returns:
            The new status if it changed, otherwise None

        Raises:
            StoreUnavailableError: if the database cannot be reached
        """
        project = await self.entities.get_project(project_id)
        if project is None:
            logger.debug("reconcile_project_missing", project_id=str(project_id))
            return None
        if project.status in TERMINAL_PROJECT_STATUSES:
            return None

        ref = EntityRef.project(project_id)
        active_blockers = await self.blockers.list_active(ref)
        tasks = await self.entities.list_non_archived_tasks(project_id)

        current = project.status
        if compute_project_blocked(project, active_blockers, tasks):
            target = ProjectStatus.BLOCKED.value
        elif current == ProjectStatus.BLOCKED.value:
            target = self.effective_status(project)
            if target == ProjectStatus.BLOCKED.value:
                raise InvariantViolationError(
                    f"Effective status for unblocked project {project_id} is 'blocked'"
                )
        else:
            return None

        # A concurrent archive or completion wins over this write
        changed = await self.entities.set_status(
            ref, target, unless_in=TERMINAL_PROJECT_STATUSES
        )
        if not changed:
            return None

        logger.info(
            "project_reconciled",
            project_id=str(project_id),
            from_status=current,
            to_status=target,
            active_project_blockers=len(active_blockers),
            blocked_tasks=sum(1 for t in tasks if t.status == TaskStatus.BLOCKED.value),
        )
        await self.hooks.on_status_change(ref, current, target, actor_id=actor_id)
        return target

    async def request_reconciliation(
        self, project_id: UUID, actor_id: UUID | None = None
    ) -> None:
        """
        Reconcile a project as a follow-up to another change.

        Runs inline, or is queued on Celery when reconcile_in_background is
        set. Failures are logged and never raised: the change that triggered
        this is already committed, and the next trigger reconciles again.
        """
        if self.settings.reconcile_in_background:
            from taskhub.tasks import reconcile_project

            try:
                reconcile_project.delay(str(project_id))
                logger.debug("reconcile_enqueued", project_id=str(project_id))
            except BrokerUnavailableError as e:
                logger.error(
                    "reconcile_enqueue_failed",
                    project_id=str(project_id),
                    error=str(e),
                )
            return

        try:
            await self.reevaluate_project_blocked_state(project_id, actor_id=actor_id)
        except TaskhubError as e:
            logger.error(
                "reconcile_failed",
                project_id=str(project_id),
                error=e.message,
                code=e.code,
            )

    async def reconcile_task_parent(
        self, task_id: UUID, actor_id: UUID | None = None
    ) -> None:
        """Reconcile the project a task belongs to, if any. Never raises."""
        try:
            project_id = await self.entities.get_task_project_id(task_id)
        except TaskhubError as e:
            logger.error(
                "reconcile_parent_lookup_failed",
                task_id=str(task_id),
                error=e.message,
                code=e.code,
            )
            return

        if project_id is not None:
            await self.request_reconciliation(project_id, actor_id=actor_id)
