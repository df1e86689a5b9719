"""Request and response schemas shared by the services and the API."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskhub.models.project import EntityType


def _non_blank_reason(v: str | None) -> str:
    if v is None:
        raise ValueError("reason must not be null")
    v = v.strip()
    if not v:
        raise ValueError("reason must not be empty")
    return v


# --- Blockers ---

class BlockerDetails(BaseModel):
    """Why an entity is blocked and what it is waiting on."""

    reason: str = Field(..., max_length=5000)
    waiting_on: str = Field(default="", max_length=500)
    expected_date: date | None = None

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        return _non_blank_reason(v)

    @field_validator("waiting_on", mode="before")
    @classmethod
    def waiting_on_default(cls, v: str | None) -> str:
        return v or ""


class BlockerCreate(BlockerDetails):
    """Block a task or project."""

    entity_type: EntityType
    entity_id: UUID
    created_by: UUID | None = None


class BlockerUpdate(BaseModel):
    """Edit blocker details. Status changes go through resolve."""

    reason: str | None = Field(None, min_length=1, max_length=5000)
    waiting_on: str | None = Field(None, max_length=500)
    expected_date: date | None = None

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str | None) -> str:
        # Only runs when reason is sent; an explicit null is rejected
        return _non_blank_reason(v)


class BlockerResolve(BaseModel):
    """Clear a blocker. An empty note is allowed and stored as null."""

    cleared_reason: str = ""
    cleared_by: UUID | None = None


class BlockerResponse(BaseModel):
    """Blocker response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_type: str
    entity_id: UUID
    status: str
    reason: str
    waiting_on: str
    expected_date: date | None
    prev_status: str | None
    captures_prev: bool
    cleared_reason: str | None
    cleared_by: UUID | None
    cleared_at: datetime | None
    created_by: UUID | None
    created_at: datetime


# --- Tasks ---

class TaskCreate(BaseModel):
    """Create a new task. Tasks are blocked through blockers only."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    status: str = Field(default="not_started", pattern="^(not_started|in_progress|done)$")
    priority: int = Field(default=2, ge=0, le=5)
    project_id: UUID | None = None
    assignee_id: UUID | None = None
    due_date: date | None = None


class TaskUpdate(BaseModel):
    """Update a task."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: str | None = Field(None, pattern="^(not_started|in_progress|done|archived)$")
    priority: int | None = Field(None, ge=0, le=5)
    project_id: UUID | None = None
    assignee_id: UUID | None = None
    due_date: date | None = None

    @field_validator("title", "status", "priority")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} must not be null")
        return v


class TaskResponse(BaseModel):
    """Task response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    status: str
    priority: int
    project_id: UUID | None
    assignee_id: UUID | None
    due_date: date | None
    created_at: datetime
    updated_at: datetime


# --- Projects ---

class ProjectCreate(BaseModel):
    """Create a new project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: str = Field(default="not_started", pattern="^(not_started|planning|in_progress)$")
    owner_id: UUID | None = None
    prep_date: date | None = None
    return_date: date | None = None


class ProjectResponse(BaseModel):
    """Project response model."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    status: str
    owner_id: UUID | None
    prep_date: date | None
    return_date: date | None
    created_at: datetime
    updated_at: datetime


class ReconcileResponse(BaseModel):
    """Outcome of an explicit project reconciliation."""

    project_id: UUID
    status: str
    changed: bool


# --- Activity and notifications ---

class ActivityResponse(BaseModel):
    """Activity log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    summary: str
    changes: dict | None
    actor_id: UUID | None
    created_at: datetime


class NotificationResponse(BaseModel):
    """In-app notification."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    notification_type: str
    title: str
    message: str | None
    target_type: str | None
    target_id: UUID | None
    sender_id: UUID | None
    is_read: bool
    created_at: datetime


class MarkNotificationsRead(BaseModel):
    """Mark some, or with no ids all, of a user's notifications as read."""

    user_id: UUID
    notification_ids: list[UUID] | None = None


class MarkNotificationsReadResponse(BaseModel):
    updated: int
