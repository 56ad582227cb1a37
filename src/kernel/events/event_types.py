"""
Event payload definitions using Pydantic for validation.

These are the payload schemas for issue lifecycle events logged to the audit trail.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BaseEvent(BaseModel):
    """Base event payload structure."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "allow"}


class IssueEvent(BaseEvent):
    """Issue-related event payloads."""

    journal_id: uuid.UUID


class IssuePublishedEvent(IssueEvent):
    """Issue published (first publish or re-publish)."""

    first_publish: bool
    date_published: Optional[datetime] = None
    access_status: str
    open_access_date: Optional[datetime] = None
    doi_assigned: bool = False
    publications_published: int = 0
    cascade_failures: int = 0
    notifications_sent: int = 0


class IssueUnpublishedEvent(IssueEvent):
    """Issue returned to unpublished."""

    publications_rescheduled: int = 0
    cascade_failures: int = 0
    current_issue_id: Optional[uuid.UUID] = None


class IssueDeletedEvent(IssueEvent):
    """Issue removed; its publications went back to the editing queue."""

    detached_publication_ids: List[uuid.UUID] = Field(default_factory=list)
    was_current: bool = False
    current_issue_id: Optional[uuid.UUID] = None


class CurrentIssueChangedEvent(BaseEvent):
    """Journal current-issue pointer moved."""

    previous_issue_id: Optional[uuid.UUID] = None
    current_issue_id: Optional[uuid.UUID] = None
