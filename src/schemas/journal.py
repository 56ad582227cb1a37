"""
Journal (context) schemas.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.kernel.models.journal import PublishingMode
from src.schemas.common import PatchModel


class JournalSettingsUpdate(PatchModel):
    """Publishing settings form."""

    name: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    publishing_mode: Optional[PublishingMode] = None
    delayed_open_access_duration: Optional[int] = None


class JournalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    path: str
    name: str
    description: Optional[str] = None
    publishing_mode: str
    delayed_open_access_duration: int
    current_issue_id: Optional[uuid.UUID] = None


class CsrfTokenResponse(BaseModel):
    token: str
    header: str
