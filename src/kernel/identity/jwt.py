"""
Bearer token verification.

Tokens are issued by the surrounding platform; this service only checks the
signature, expiry and token type and extracts the caller's user id.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict

from src.config import get_settings


class AccessTokenPayload(BaseModel):
    """JWT access token payload."""

    model_config = ConfigDict(from_attributes=True)

    sub: str  # User ID
    exp: datetime
    iat: Optional[datetime] = None
    jti: Optional[str] = None

    @property
    def user_id(self) -> Optional[uuid.UUID]:
        try:
            return uuid.UUID(self.sub)
        except ValueError:
            return None


class JWTVerifier:
    """Verifies access tokens signed with the shared secret."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Verify and decode an access token.

        Returns:
            AccessTokenPayload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except JWTError:
            return None

        # Refresh tokens are not accepted as bearer credentials
        if payload.get("type", "access") != "access" or "sub" not in payload:
            return None

        iat = payload.get("iat")
        return AccessTokenPayload(
            sub=str(payload["sub"]),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(iat, tz=timezone.utc) if iat else None,
            jti=payload.get("jti"),
        )


_verifier: Optional[JWTVerifier] = None


def get_jwt_verifier() -> JWTVerifier:
    """Get or create the default verifier."""
    global _verifier
    if _verifier is None:
        _verifier = JWTVerifier()
    return _verifier


def verify_access_token(token: str) -> Optional[AccessTokenPayload]:
    """Verify an access token."""
    return get_jwt_verifier().verify_access_token(token)
