"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import (
    ErrorResponse,
    FieldError,
    GlobalEvent,
    HealthResponse,
    OperationResult,
    PatchModel,
)
from src.schemas.issue import (
    AccessSettingsResponse,
    AccessSettingsUpdate,
    IdentifierResponse,
    IdentifierUpdate,
    IssueDataUpdate,
    IssueListResponse,
    IssueResponse,
    LifecycleResponse,
    PublishRequest,
    TocEntry,
)
from src.schemas.journal import CsrfTokenResponse, JournalResponse, JournalSettingsUpdate
from src.schemas.publication import PublicationResponse, ScheduleRequest

__all__ = [
    # Common
    "ErrorResponse",
    "FieldError",
    "GlobalEvent",
    "HealthResponse",
    "OperationResult",
    "PatchModel",
    # Issue
    "AccessSettingsResponse",
    "AccessSettingsUpdate",
    "IdentifierResponse",
    "IdentifierUpdate",
    "IssueDataUpdate",
    "IssueListResponse",
    "IssueResponse",
    "LifecycleResponse",
    "PublishRequest",
    "TocEntry",
    # Journal
    "CsrfTokenResponse",
    "JournalResponse",
    "JournalSettingsUpdate",
    # Publication
    "PublicationResponse",
    "ScheduleRequest",
]
