"""
Publication schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ScheduleRequest(BaseModel):
    """Assign a publication to an issue."""

    issue_id: uuid.UUID


class PublicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    submission_id: uuid.UUID
    version: int
    title: str
    status: str
    issue_id: Optional[uuid.UUID] = None
    seq: int
    doi: Optional[str] = None
    date_published: Optional[datetime] = None
    submission_status: Optional[str] = None
