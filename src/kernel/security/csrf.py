"""
Anti-forgery tokens for state-changing requests.

A token is the HMAC-SHA256 of the user id and journal id under the CSRF
secret, so it is stable per caller and journal and needs no storage.
"""

import hashlib
import hmac
import uuid
from typing import Optional

from src.config import get_settings
from src.kernel.exceptions import AuthorizationError

CSRF_HEADER = "X-CSRF-Token"


def generate_csrf_token(
    user_id: uuid.UUID,
    journal_id: uuid.UUID,
    secret: Optional[str] = None,
) -> str:
    key = (secret or get_settings().csrf_secret).encode()
    message = f"{user_id}:{journal_id}".encode()
    return hmac.new(key, message, hashlib.sha256).hexdigest()


def verify_csrf_token(
    token: Optional[str],
    user_id: uuid.UUID,
    journal_id: uuid.UUID,
    secret: Optional[str] = None,
) -> None:
    """
    Raises:
        AuthorizationError: missing or mismatching token
    """
    expected = generate_csrf_token(user_id, journal_id, secret)
    if not token or not hmac.compare_digest(token, expected):
        raise AuthorizationError("Invalid anti-forgery token")
