"""Best-effort hooks run after a status change has been committed."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings, get_settings
from taskhub.models.project import EntityRef, EntityType, TaskStatus
from taskhub.services.activity import ActivityService
from taskhub.services.notification import NotificationService
from taskhub.stores.entities import EntityStatusStore

logger = structlog.get_logger()

BLOCKED = TaskStatus.BLOCKED.value


class StatusChangeHooks:
    """
    Activity and notification side effects of a status change.

    Each hook swallows and logs its own failure. By the time a hook runs the
    status write is committed, and nothing here may undo it.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.activity = ActivityService(db)
        self.notifications = NotificationService(db)
        self.entities = EntityStatusStore(db)

    async def record_activity(
        self,
        entity_type: str,
        entity_id: UUID,
        action: str,
        summary: str,
        changes: dict[str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> None:
        """Append an activity entry, logging instead of raising on failure."""
        try:
            await self.activity.log_activity(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                summary=summary,
                changes=changes,
                actor_id=actor_id,
            )
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "activity_hook_failed",
                entity_type=entity_type,
                entity_id=str(entity_id),
                action=action,
                error=str(e),
            )

    async def on_status_change(
        self,
        entity: EntityRef,
        old_status: str | None,
        new_status: str,
        actor_id: UUID | None = None,
        changes: dict[str, Any] | None = None,
    ) -> None:
        """Record the change and notify the task assignee or project owner."""
        changes = dict(changes or {})
        changes.setdefault("status", {"from": old_status, "to": new_status})
        await self.record_activity(
            entity.type.value,
            entity.id,
            "status_change",
            f"{entity.type.value.capitalize()} status changed to {new_status}",
            changes=changes,
            actor_id=actor_id,
        )

        if not self.settings.notify_on_status_change:
            return
        if BLOCKED not in (old_status, new_status):
            return

        try:
            await self._notify_blocked_change(entity, new_status, actor_id)
        except Exception as e:
            await self.db.rollback()
            logger.warning(
                "notification_hook_failed",
                entity=str(entity),
                new_status=new_status,
                error=str(e),
            )

    async def _notify_blocked_change(
        self, entity: EntityRef, new_status: str, actor_id: UUID | None
    ) -> None:
        if entity.type is EntityType.TASK:
            task = await self.entities.get_task(entity.id)
            if task is None:
                return
            recipient, label = task.assignee_id, task.title
        elif entity.type is EntityType.PROJECT:
            project = await self.entities.get_project(entity.id)
            if project is None:
                return
            recipient, label = project.owner_id, project.name
        else:
            raise ValueError(f"Unknown entity type: {entity.type!r}")

        if recipient is None:
            return

        if new_status == BLOCKED:
            notification_type = "entity_blocked"
            title = f"Blocked: {label}"
            message = f"The {entity.type.value} '{label}' is blocked"
        else:
            notification_type = "entity_unblocked"
            title = f"Unblocked: {label}"
            message = f"The {entity.type.value} '{label}' is no longer blocked ({new_status})"

        await self.notifications.notify(
            user_id=recipient,
            notification_type=notification_type,
            title=title,
            message=message,
            target_type=entity.type.value,
            target_id=entity.id,
            sender_id=actor_id,
        )
