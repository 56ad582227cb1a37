"""
Notification dispatcher.
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.models.notification import Notification, NotificationType
from src.logging_config import get_logger

logger = get_logger(__name__)

ASSOC_TYPE_ISSUE = "issue"


class NotificationService:
    """Persists one notification per recipient."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_notification(
        self,
        user_id: uuid.UUID,
        notification_type: NotificationType,
        journal_id: Optional[uuid.UUID] = None,
        assoc_type: Optional[str] = None,
        assoc_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            notification_type=notification_type,
            journal_id=journal_id,
            assoc_type=assoc_type,
            assoc_id=assoc_id,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def create_trivial_notification(
        self,
        user_id: uuid.UUID,
        journal_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Acknowledge a saved change to the user who made it."""
        return await self.create_notification(user_id, NotificationType.TRIVIAL, journal_id)

    async def notify_users(
        self,
        user_ids: Iterable[uuid.UUID],
        notification_type: NotificationType,
        journal_id: uuid.UUID,
        assoc_type: Optional[str] = None,
        assoc_id: Optional[uuid.UUID] = None,
    ) -> List[Notification]:
        """Fan a notification out to every recipient."""
        notifications = [
            await self.create_notification(user_id, notification_type, journal_id, assoc_type, assoc_id)
            for user_id in user_ids
        ]
        logger.info(
            "Notifications sent",
            extra={
                "notification_type": notification_type.value,
                "journal_id": str(journal_id),
                "recipients": len(notifications),
            },
        )
        return notifications
