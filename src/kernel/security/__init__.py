"""Request security helpers."""

from src.kernel.security.csrf import CSRF_HEADER, generate_csrf_token, verify_csrf_token

__all__ = ["CSRF_HEADER", "generate_csrf_token", "verify_csrf_token"]
