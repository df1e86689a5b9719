"""SQLAlchemy models package."""

from taskhub.models.project import (
    Blocker,
    BlockerStatus,
    EntityRef,
    EntityType,
    Project,
    ProjectStatus,
    Task,
    TaskStatus,
)
from taskhub.models.activity import (
    Activity,
    Notification,
)

__all__ = [
    # Project
    "Blocker",
    "BlockerStatus",
    "EntityRef",
    "EntityType",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    # Activity
    "Activity",
    "Notification",
]
