"""
Stable Kernel Layer

Foundational components the rest of the application builds on:
- Issue, submission and publication stores
- Immutable Event Log (all mutations logged)
- Identity Core (bearer token verification)
- Permission Core (journal roles)

Architectural Invariants:
- All state changes logged before commit; logs immutable
- The journal's current issue is read and written only through IssueService
"""

from src.kernel.models import (
    User,
    UserRole,
    JournalRole,
    JournalRoleType,
    Journal,
    PublishingMode,
    Issue,
    IssueAccessStatus,
    Submission,
    Publication,
    SubmissionStatus,
    Doi,
    DoiStatus,
    Notification,
    NotificationType,
    EventLog,
    EventType,
)

__all__ = [
    # User & Identity
    "User",
    "UserRole",
    "JournalRole",
    "JournalRoleType",
    # Journal
    "Journal",
    "PublishingMode",
    # Issues
    "Issue",
    "IssueAccessStatus",
    # Submissions
    "Submission",
    "Publication",
    "SubmissionStatus",
    # Identifiers
    "Doi",
    "DoiStatus",
    # Notifications
    "Notification",
    "NotificationType",
    # Event Log
    "EventLog",
    "EventType",
]
