"""
Immutable event log for audit trail.

Every issue and publication mutation is logged here before commit.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Text, func, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, utc_now, enum_value, generate_uuid


class EventType(str, Enum):
    """All event types for the audit log."""

    # Issue events
    ISSUE_CREATED = "issue.created"
    ISSUE_UPDATED = "issue.updated"
    ISSUE_DELETED = "issue.deleted"
    ISSUE_PUBLISHED = "issue.published"
    ISSUE_UNPUBLISHED = "issue.unpublished"
    ISSUE_ACCESS_UPDATED = "issue.access_updated"
    ISSUE_COVER_IMAGE_DELETED = "issue.cover_image_deleted"
    CURRENT_ISSUE_CHANGED = "journal.current_issue_changed"

    # Identifier events
    DOI_ASSIGNED = "doi.assigned"
    DOI_CLEARED = "doi.cleared"

    # Publication events
    PUBLICATION_SCHEDULED = "publication.scheduled"
    PUBLICATION_STATUS_CHANGED = "publication.status_changed"
    SUBMISSION_STATUS_CHANGED = "submission.status_changed"

    # Journal events
    JOURNAL_SETTINGS_UPDATED = "journal.settings_updated"


class EventLog(Base):
    """
    Immutable audit event log.

    Append-only: rows are never updated or deleted.
    """

    __tablename__ = "event_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )

    event_type: Mapped[EventType] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    # Entity reference
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )

    # Actor; None for system and queued-job events
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )
    user_agent: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_event_logs_entity", "entity_type", "entity_id"),
        Index("ix_event_logs_type_time", "event_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<EventLog {enum_value(self.event_type)} {self.entity_type}:{self.entity_id}>"
