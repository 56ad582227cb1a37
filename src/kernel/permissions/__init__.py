"""
Permission Core - journal role checks.
"""

from src.kernel.permissions.permission_service import PermissionService

__all__ = ["PermissionService"]
