"""
In-app notifications addressed to a single user.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, func, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, utc_now, generate_uuid


class NotificationType(str, Enum):
    PUBLISHED_ISSUE = "published_issue"
    # "Your changes have been saved" style acknowledgement
    TRIVIAL = "trivial"


class Notification(Base):
    """Notification record."""

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    journal_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("journals.id", ondelete="CASCADE"),
        nullable=True,
    )
    notification_type: Mapped[NotificationType] = mapped_column(
        String(50),
        nullable=False,
    )
    assoc_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    assoc_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type} user={self.user_id}>"
