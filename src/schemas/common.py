"""
Common schema types used across the API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.kernel.patch import Patch


class GlobalEvent(BaseModel):
    """Event other open views should react to (e.g. issuePublished)."""

    name: str
    data: Dict[str, Any] = Field(default_factory=dict)


class OperationResult(BaseModel):
    """Standard result of a state-changing operation."""

    status: bool = True
    content: Optional[Any] = None
    event: Optional[str] = None
    global_event: Optional[GlobalEvent] = None


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Standard failure payload."""

    status: bool = False
    content: str
    errors: Optional[List[FieldError]] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"


class PatchModel(BaseModel):
    """Request body for partial updates: only fields sent by the client are applied."""

    def to_patch(self) -> Patch:
        # exclude_unset keeps an explicit null apart from a missing field
        return Patch(self.model_dump(exclude_unset=True))
