"""Project, Task and Blocker models."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.db.base import BaseModel


class TaskStatus(str, Enum):
    """Lifecycle states of a task."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"
    ARCHIVED = "archived"


class ProjectStatus(str, Enum):
    """Lifecycle states of a project.

    The non-blocked vocabulary is produced by the effective status
    computation; ``completed`` and ``archived`` are set by hand only.
    """

    NOT_STARTED = "not_started"
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    EXECUTING = "executing"
    POST_EVENT = "post_event"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    ARCHIVED = "archived"


# Project states that reconciliation never leaves
TERMINAL_PROJECT_STATUSES = frozenset(
    {ProjectStatus.COMPLETED.value, ProjectStatus.ARCHIVED.value}
)


class BlockerStatus(str, Enum):
    """A blocker is active until cleared; cleared is terminal."""

    ACTIVE = "active"
    CLEARED = "cleared"


class EntityType(str, Enum):
    """Kinds of entity a blocker can attach to."""

    TASK = "task"
    PROJECT = "project"


@dataclass(frozen=True)
class EntityRef:
    """Typed reference to a blockable task or project."""

    type: EntityType
    id: UUID

    @classmethod
    def task(cls, task_id: UUID) -> "EntityRef":
        return cls(EntityType.TASK, task_id)

    @classmethod
    def project(cls, project_id: UUID) -> "EntityRef":
        return cls(EntityType.PROJECT, project_id)

    def __str__(self) -> str:
        return f"{self.type.value}:{self.id}"


class Project(BaseModel):
    """Project grouping tasks; its blocked state is derived from them."""

    __tablename__ = "projects"

    # Basic info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=ProjectStatus.NOT_STARTED.value
    )  # see ProjectStatus

    # Notification recipient for project-level status changes
    owner_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    # Timeline (drives the effective status)
    prep_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    return_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship(
        "Task", back_populates="project", lazy="selectin"
    )

    def __repr__(self) -> str:
        try:
            return f"<Project {self.name}>"
        except Exception:
            try:
                return f"<Project id={self.id}>"
            except Exception:
                return "<Project detached>"


class Task(BaseModel):
    """Task, optionally within a project."""

    __tablename__ = "tasks"

    # Basic info
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status and priority
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=TaskStatus.NOT_STARTED.value, index=True
    )  # see TaskStatus
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=2)

    # Parent project; tasks outside a project never trigger reconciliation
    project_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assignee_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True), nullable=True, index=True
    )

    # Timeline
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    project: Mapped["Project | None"] = relationship("Project", back_populates="tasks")

    def __repr__(self) -> str:
        try:
            return f"<Task {self.title[:30]}>"
        except Exception:
            try:
                return f"<Task id={self.id}>"
            except Exception:
                return "<Task detached>"


class Blocker(BaseModel):
    """One reason a task or project cannot proceed.

    Several active blockers may coexist on an entity; it stays blocked until
    all of them are cleared.
    """

    __tablename__ = "blockers"
    __table_args__ = (
        Index("ix_blockers_entity_status", "entity_type", "entity_id", "status"),
    )

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    waiting_on: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Polymorphic reference to the blocked entity; fixed after creation
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=BlockerStatus.ACTIVE.value
    )  # active, cleared

    # Entity status snapshot taken at creation. Written but not read back:
    # resolved tasks go to in_progress regardless.
    prev_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    captures_prev: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Resolution
    cleared_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cleared_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    cleared_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_by: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    @property
    def entity(self) -> EntityRef:
        return EntityRef(EntityType(self.entity_type), self.entity_id)

    @property
    def is_active(self) -> bool:
        return self.status == BlockerStatus.ACTIVE.value

    def __repr__(self) -> str:
        try:
            return f"<Blocker {self.entity_type}={self.entity_id} {self.status}>"
        except Exception:
            return "<Blocker detached>"
