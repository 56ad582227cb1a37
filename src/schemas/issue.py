"""
Issue schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.kernel.models.issue import IssueAccessStatus
from src.schemas.common import OperationResult, PatchModel


class IssueDataUpdate(PatchModel):
    """Issue identification form. Used for both add and edit."""

    volume: Optional[int] = None
    number: Optional[str] = Field(None, max_length=40)
    year: Optional[int] = None
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    show_volume: Optional[bool] = None
    show_number: Optional[bool] = None
    show_year: Optional[bool] = None
    show_title: Optional[bool] = None
    cover_image_alt_text: Optional[str] = Field(None, max_length=500)


class AccessSettingsUpdate(PatchModel):
    access_status: Optional[IssueAccessStatus] = None
    open_access_date: Optional[datetime] = None


class AccessSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    access_status: str
    open_access_date: Optional[datetime] = None


class IdentifierUpdate(BaseModel):
    """Assign a DOI; omit it to generate one from the journal's pattern."""

    doi: Optional[str] = Field(None, max_length=255)


class IdentifierResponse(BaseModel):
    issue_id: uuid.UUID
    doi: Optional[str] = None
    status: Optional[str] = None


class PublishRequest(BaseModel):
    """Publish options (all default to off)."""

    confirmed: bool = False
    assign_identifiers: bool = False
    send_notification: bool = False


class IssueResponse(BaseModel):
    """Issue response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    journal_id: uuid.UUID
    identification: str
    volume: Optional[int] = None
    number: Optional[str] = None
    year: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    show_volume: bool
    show_number: bool
    show_year: bool
    show_title: bool
    published: bool
    date_published: Optional[datetime] = None
    access_status: str
    open_access_date: Optional[datetime] = None
    cover_image: Optional[str] = None
    cover_image_alt_text: Optional[str] = None
    is_current: bool = False
    publication_count: int = 0
    created_at: datetime
    updated_at: datetime


class IssueListResponse(BaseModel):
    items: List[IssueResponse]
    total: int


class TocEntry(BaseModel):
    """One publication in an issue's table of contents."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    submission_id: uuid.UUID
    title: str
    status: str
    seq: int
    doi: Optional[str] = None
    date_published: Optional[datetime] = None


class CascadeOutcomeResponse(BaseModel):
    submission_id: uuid.UUID
    succeeded: bool
    publication_ids: List[uuid.UUID] = Field(default_factory=list)
    submission_status: Optional[str] = None
    reason: Optional[str] = None


class LifecycleResponse(OperationResult):
    """Result of publish / unpublish / set current / delete."""

    confirmation_required: bool = False
    outcomes: List[CascadeOutcomeResponse] = Field(default_factory=list)
