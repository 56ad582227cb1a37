"""
Service-layer exceptions.

Raised by kernel services and the lifecycle manager, mapped to failure
payloads by the exception handlers in src.main. None of them is retried.
"""

from typing import Dict, List, Optional


class JournalServiceError(Exception):
    """Base exception for all service errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthorizationError(JournalServiceError):
    """Wrong journal, missing role or failed anti-forgery check. Nothing was changed."""

    status_code = 403


class NotFoundError(JournalServiceError):
    """A referenced issue, publication, journal or file does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)


class FormValidationError(JournalServiceError):
    """Form input failed validation; the change was not applied."""

    status_code = 422

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))

    def as_list(self) -> List[Dict[str, str]]:
        return [{"field": field, "message": msg} for field, msg in self.errors.items()]


class LifecycleVetoedError(JournalServiceError):
    """A registered lifecycle hook refused the operation before any mutation."""

    status_code = 409

    def __init__(self, point: str, reason: str):
        self.point = point
        self.reason = reason
        super().__init__(f"{point} vetoed: {reason}")
