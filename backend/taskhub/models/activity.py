"""Activity and notification models for tracking changes and alerts."""

from uuid import UUID

from sqlalchemy import JSON, Boolean, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from taskhub.db.base import BaseModel

JSONType = JSON().with_variant(JSONB, "postgresql")


class Activity(BaseModel):
    """
    Activity log entry for a task, project or blocker.

    Written best-effort after the change it describes; a missing entry never
    means the change did not happen.
    """

    __tablename__ = "activities"

    # Target entity (polymorphic reference)
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="Type of entity affected (task, project, blocker)",
    )
    entity_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="ID of the affected entity",
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="create, update, delete, status_change, block, unblock",
    )
    summary: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Human-readable description of the change",
    )
    changes: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="Field changes as {field: {from, to}}",
    )

    # Actor
    actor_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Activity {self.action} {self.entity_type}={self.entity_id}>"


class Notification(BaseModel):
    """In-app notification for a user."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    notification_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="entity_blocked, entity_unblocked, ...",
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Navigation target
    target_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    target_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    sender_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type} user={self.user_id}>"
