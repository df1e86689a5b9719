"""In-app notifications about blocked and unblocked work."""

from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.activity import Notification

logger = structlog.get_logger()


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        target_type: str | None = None,
        target_id: UUID | None = None,
        sender_id: UUID | None = None,
    ) -> Notification | None:
        """
        Store an unread notification for a user and commit.

        Returns None without writing when the recipient caused the change
        themselves.
        """
        if sender_id is not None and sender_id == user_id:
            logger.debug(
                "skipping_self_notification",
                user_id=str(user_id),
                notification_type=notification_type,
            )
            return None

        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            target_type=target_type,
            target_id=target_id,
            sender_id=sender_id,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.commit()

        logger.info(
            "notification_created",
            user_id=str(user_id),
            notification_type=notification_type,
            target_type=target_type,
            target_id=str(target_id) if target_id else None,
        )
        return notification

    async def list_unread(self, user_id: UUID) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

    async def mark_read(
        self, user_id: UUID, notification_ids: list[UUID] | None = None
    ) -> int:
        """
        Mark a user's notifications as read and commit.

        With no ids every unread notification of the user is marked. Ids that
        belong to another user are ignored.

        Returns:
            How many notifications changed
        """
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        if notification_ids is not None:
            stmt = stmt.where(Notification.id.in_(notification_ids))

        result = await self.db.execute(stmt)
        await self.db.commit()

        logger.info("notifications_marked_read", user_id=str(user_id), count=result.rowcount)
        return result.rowcount
