"""
Audit event infrastructure.

Provides append-only audit logging with immutable events.
"""

from src.kernel.events.event_store import EventStore
from src.kernel.events.event_types import (
    BaseEvent,
    IssueEvent,
    IssuePublishedEvent,
    IssueUnpublishedEvent,
    IssueDeletedEvent,
    CurrentIssueChangedEvent,
)

__all__ = [
    "EventStore",
    "BaseEvent",
    "IssueEvent",
    "IssuePublishedEvent",
    "IssueUnpublishedEvent",
    "IssueDeletedEvent",
    "CurrentIssueChangedEvent",
]
