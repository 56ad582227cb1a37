"""
Identity Core - bearer token verification.
"""

from src.kernel.identity.jwt import (
    AccessTokenPayload,
    JWTVerifier,
    get_jwt_verifier,
    verify_access_token,
)

__all__ = [
    "AccessTokenPayload",
    "JWTVerifier",
    "get_jwt_verifier",
    "verify_access_token",
]
