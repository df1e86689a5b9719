"""Activity history and notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.db.session import get_db_session
from taskhub.models.activity import Activity, Notification
from taskhub.schemas import (
    ActivityResponse,
    MarkNotificationsRead,
    MarkNotificationsReadResponse,
    NotificationResponse,
)
from taskhub.services.activity import ActivityService
from taskhub.services.notification import NotificationService

router = APIRouter()


@router.get("/activities", response_model=list[ActivityResponse])
async def list_activities(
    entity_type: str = Query(..., pattern="^(task|project|blocker)$"),
    entity_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db_session),
) -> list[Activity]:
    """Change history of a task, project or blocker, oldest first."""
    return await ActivityService(db).list_for_entity(entity_type, entity_id)


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_unread_notifications(
    user_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db_session),
) -> list[Notification]:
    """Unread notifications of a user, newest first."""
    return await NotificationService(db).list_unread(user_id)


@router.post("/notifications/mark-read", response_model=MarkNotificationsReadResponse)
async def mark_notifications_read(
    request: MarkNotificationsRead,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    updated = await NotificationService(db).mark_read(
        request.user_id, request.notification_ids
    )
    return {"updated": updated}
