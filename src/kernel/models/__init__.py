"""
Kernel Data Models

SQLAlchemy models for journals, issues, submissions and their publications,
identifiers, notifications, the audit log and usage statistics.
"""

from src.kernel.models.base import Base, TimestampMixin, enum_value, generate_uuid
from src.kernel.models.user import User, UserRole, JournalRole, JournalRoleType
from src.kernel.models.journal import Journal, PublishingMode
from src.kernel.models.issue import Issue, IssueAccessStatus
from src.kernel.models.submission import Submission, Publication, SubmissionStatus
from src.kernel.models.doi import Doi, DoiStatus
from src.kernel.models.notification import Notification, NotificationType
from src.kernel.models.event_log import EventLog, EventType
from src.kernel.models.metrics import (
    MetricsCounterSubmissionInstitutionDaily,
    TemporaryItemInvestigation,
    TemporaryItemRequest,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "enum_value",
    "generate_uuid",
    # Users
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
    # Statistics
    "MetricsCounterSubmissionInstitutionDaily",
    "TemporaryItemInvestigation",
    "TemporaryItemRequest",
]
