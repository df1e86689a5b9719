"""Activity log writes."""

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.activity import Activity

logger = structlog.get_logger()


class ActivityService:
    """Append and read human-readable change entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_activity(
        self,
        entity_type: str,
        entity_id: UUID,
        action: str,
        summary: str,
        changes: dict[str, Any] | None = None,
        actor_id: UUID | None = None,
    ) -> Activity:
        """
        Record an activity entry and commit.

        Args:
            entity_type: task, project or blocker
            entity_id: ID of the affected entity
            action: create, update, delete, status_change, block or unblock
            summary: Human-readable description
            changes: Optional {field: {"from": ..., "to": ...}} map
            actor_id: Optional user who made the change
        """
        activity = Activity(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            summary=summary,
            changes=_jsonable(changes),
            actor_id=actor_id,
        )
        self.db.add(activity)
        await self.db.commit()

        logger.debug(
            "activity_logged",
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
        )
        return activity

    async def list_for_entity(self, entity_type: str, entity_id: UUID) -> list[Activity]:
        """Activity entries for an entity, oldest first."""
        result = await self.db.execute(
            select(Activity)
            .where(Activity.entity_type == entity_type, Activity.entity_id == entity_id)
            .order_by(Activity.created_at, Activity.id)
        )
        return list(result.scalars().all())


def _jsonable(changes: dict[str, Any] | None) -> dict[str, Any] | None:
    """Stringify UUIDs and dates so the change map fits a JSON column."""
    if changes is None:
        return None
    return {
        field: {
            key: value if value is None or isinstance(value, (str, int, float, bool)) else str(value)
            for key, value in diff.items()
        }
        for field, diff in changes.items()
    }
