"""Notification dispatcher."""

from src.kernel.notifications.notification_service import ASSOC_TYPE_ISSUE, NotificationService

__all__ = ["ASSOC_TYPE_ISSUE", "NotificationService"]
