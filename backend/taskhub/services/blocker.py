"""Blocker lifecycle: blocking and unblocking tasks and projects."""

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings, get_settings
from taskhub.exceptions import InvariantViolationError, NotFoundError, TaskhubError
from taskhub.models.project import (
    Blocker,
    BlockerStatus,
    EntityRef,
    EntityType,
    TaskStatus,
)
from taskhub.schemas import BlockerDetails, BlockerUpdate
from taskhub.services.hooks import StatusChangeHooks
from taskhub.services.project_status import EffectiveStatusFn, compute_effective_status
from taskhub.services.reconciliation import ProjectReconciler
from taskhub.stores.blockers import BlockerStore
from taskhub.stores.entities import EntityStatusStore

logger = structlog.get_logger()

BLOCKED = TaskStatus.BLOCKED.value
ARCHIVED = TaskStatus.ARCHIVED.value

# Statuses never captured as prev_status: restoring to them would either
# leave the entity blocked or revive an archived one
UNCAPTURABLE_STATUSES = frozenset({BLOCKED, ARCHIVED})

BLOCK_FAILED_REASON = "block failed"


def should_capture_prev(current_status: str | None) -> bool:
    return current_status is not None and current_status not in UNCAPTURABLE_STATUSES


class BlockerService:
    """Creates and resolves blockers and keeps entity statuses in step.

    Writes happen in a fixed order, each committed on its own: blocker
    record, then entity status, then parent project reconciliation. A failure
    part-way leaves at worst a stale project, which the next trigger fixes.
    """

    def __init__(
        self,
        db: AsyncSession,
        effective_status: EffectiveStatusFn = compute_effective_status,
        settings: Settings | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.blockers = BlockerStore(db)
        self.entities = EntityStatusStore(db)
        self.hooks = StatusChangeHooks(db, self.settings)
        self.reconciler = ProjectReconciler(
            db,
            effective_status=effective_status,
            hooks=self.hooks,
            settings=self.settings,
        )

    # =========================================================================
    # Create
    # =========================================================================

    async def create_blocker(
        self,
        entity: EntityRef,
        data: BlockerDetails,
        created_by: UUID | None = None,
    ) -> Blocker:
        """
        Block a task or project.

        This will:
        1. Snapshot the entity's current status into prev_status (unless it
           is already blocked or archived)
        2. Store a new active blocker
        3. Force the entity's status to blocked
        4. For a task, reconcile its parent project

        Args:
            entity: Task or project to block
            data: Reason, waiting_on and expected_date
            created_by: Optional user creating the blocker

        Returns:
            The new Blocker

        Raises:
            NotFoundError: if the entity does not exist (nothing is written)
            StoreUnavailableError: if the blocker or status write fails. A
                blocker whose status write failed is cleared again.
        """
        current_status = await self.entities.get_status(entity)

        capture = should_capture_prev(current_status)
        prev_status = current_status if capture else None
        if prev_status in UNCAPTURABLE_STATUSES:
            raise InvariantViolationError(
                f"Refusing to capture prev_status={prev_status!r} for {entity}"
            )

        blocker = await self.blockers.create(
            entity,
            reason=data.reason,
            waiting_on=data.waiting_on,
            expected_date=data.expected_date,
            prev_status=prev_status,
            captures_prev=capture,
            created_by=created_by,
        )
        # Hooks may roll the session back, which expires loaded rows
        blocker_id = blocker.id
        logger.info(
            "blocker_created",
            blocker_id=str(blocker_id),
            entity_type=entity.type.value,
            entity_id=str(entity.id),
            captures_prev=capture,
        )

        try:
            changed = await self.entities.set_status(entity, BLOCKED)
        except TaskhubError:
            await self._withdraw_blocker(blocker_id)
            raise

        if entity.type is EntityType.TASK:
            await self.reconciler.reconcile_task_parent(entity.id, actor_id=created_by)

        await self.hooks.record_activity(
            "blocker",
            blocker_id,
            "block",
            f"Blocked {entity.type.value}: {data.reason}",
            actor_id=created_by,
        )
        if changed:
            await self.hooks.on_status_change(
                entity, current_status, BLOCKED, actor_id=created_by
            )

        return await self.blockers.get(blocker_id)

    async def _withdraw_blocker(self, blocker_id: UUID) -> None:
        """Clear a blocker whose entity could not be marked blocked."""
        try:
            await self.blockers.update(
                blocker_id,
                status=BlockerStatus.CLEARED.value,
                cleared_reason=BLOCK_FAILED_REASON,
                cleared_at=datetime.now(timezone.utc),
            )
        except TaskhubError as exc:
            logger.error(
                "blocker_withdraw_failed",
                blocker_id=str(blocker_id),
                error=exc.message,
            )
            return
        logger.warning("blocker_withdrawn", blocker_id=str(blocker_id))

    # =========================================================================
    # Update details
    # =========================================================================

    async def update_blocker(
        self,
        blocker_id: UUID,
        data: BlockerUpdate,
        actor_id: UUID | None = None,
    ) -> Blocker:
        """Edit reason, waiting_on or expected_date. Never changes any status."""
        fields = data.model_dump(exclude_unset=True)
        if "waiting_on" in fields and fields["waiting_on"] is None:
            fields["waiting_on"] = ""

        if not fields:
            return await self.blockers.get(blocker_id)

        await self.blockers.update(blocker_id, **fields)
        logger.info("blocker_updated", blocker_id=str(blocker_id), fields=sorted(fields))

        await self.hooks.record_activity(
            "blocker",
            blocker_id,
            "update",
            "Updated blocker details",
            actor_id=actor_id,
        )
        return await self.blockers.get(blocker_id)

    # =========================================================================
    # Resolve
    # =========================================================================

    async def resolve_blocker(
        self,
        blocker_id: UUID,
        cleared_reason: str = "",
        cleared_by: UUID | None = None,
    ) -> Blocker:
        """
        Clear a blocker and unblock its entity once nothing else blocks it.

        An empty resolution note is stored as null. Resolving a blocker that
        is already cleared re-applies the cleared fields. It changes no
        entity status unless the entity is still blocked with no active
        blockers left, which happens when an earlier unblock write failed.

        When the last active blocker of an entity is cleared:
        - a task goes to in_progress (prev_status is not consulted), then its
          parent project is reconciled
        - a project is reconciled, unless one of its tasks is still blocked

        Raises:
            NotFoundError: if the blocker does not exist
            StoreUnavailableError: if the blocker or status write fails
        """
        existing = await self.blockers.get(blocker_id)
        was_active = existing.is_active

        fields = {
            "status": BlockerStatus.CLEARED.value,
            "cleared_reason": (cleared_reason or "").strip() or None,
            "cleared_at": datetime.now(timezone.utc),
        }
        if cleared_by is not None:
            fields["cleared_by"] = cleared_by

        blocker = await self.blockers.update(blocker_id, **fields)
        entity = blocker.entity

        if was_active:
            logger.info(
                "blocker_resolved",
                blocker_id=str(blocker_id),
                entity_type=entity.type.value,
                entity_id=str(entity.id),
            )
            await self.hooks.record_activity(
                "blocker",
                blocker_id,
                "unblock",
                f"Resolved blocker: {blocker.reason}",
                actor_id=cleared_by,
            )
        else:
            logger.info("blocker_already_cleared", blocker_id=str(blocker_id))

        remaining = await self.blockers.list_active(entity)
        if remaining:
            logger.info(
                "entity_still_blocked",
                entity_type=entity.type.value,
                entity_id=str(entity.id),
                remaining_blockers=len(remaining),
            )
            return await self.blockers.get(blocker_id)

        # A repeat resolve finishes an unblock whose status write failed
        # earlier; an entity that has moved on since is left alone
        if not was_active and not await self._still_blocked(entity):
            return await self.blockers.get(blocker_id)

        if entity.type is EntityType.TASK:
            await self._unblock_task(entity, cleared_by)
        elif entity.type is EntityType.PROJECT:
            await self._unblock_project(entity, cleared_by)
        else:
            raise InvariantViolationError(f"Unknown entity type: {entity.type!r}")

        return await self.blockers.get(blocker_id)

    async def _still_blocked(self, entity: EntityRef) -> bool:
        try:
            return await self.entities.get_status(entity) == BLOCKED
        except NotFoundError:
            return False

    async def _unblock_task(self, entity: EntityRef, actor_id: UUID | None) -> None:
        try:
            old_status = await self.entities.get_status(entity)
            changed = await self.entities.set_status(entity, TaskStatus.IN_PROGRESS.value)
        except NotFoundError:
            # Task deleted while blocked; the blocker is cleared regardless
            logger.warning("blocked_task_missing", task_id=str(entity.id))
            return

        await self.reconciler.reconcile_task_parent(entity.id, actor_id=actor_id)
        if changed:
            await self.hooks.on_status_change(
                entity, old_status, TaskStatus.IN_PROGRESS.value, actor_id=actor_id
            )

    async def _unblock_project(self, entity: EntityRef, actor_id: UUID | None) -> None:
        blocked_tasks = await self.entities.list_blocked_tasks(entity.id)
        if blocked_tasks:
            logger.info(
                "project_still_blocked_by_tasks",
                project_id=str(entity.id),
                blocked_tasks=len(blocked_tasks),
            )
            return
        await self.reconciler.request_reconciliation(entity.id, actor_id=actor_id)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_blockers(
        self, entity: EntityRef, include_cleared: bool = False
    ) -> list[Blocker]:
        """Blockers of an entity, newest first; active only by default."""
        return await self.blockers.list_for_entity(entity, include_cleared=include_cleared)
