"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.kernel.identity.jwt import verify_access_token
from src.kernel.issues.cover_images import PublicFileManager
from src.kernel.models.user import JournalRoleType, User
from src.kernel.permissions.permission_service import PermissionService
from src.kernel.security.csrf import CSRF_HEADER, verify_csrf_token
from src.orchestration.hooks import LifecycleHooks, default_hooks


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    user_id = payload.user_id if payload else None
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_journal_manager(
    journal_id: uuid.UUID,
    user: CurrentUser,
    db: DbSession,
) -> User:
    """Require the manager role in the journal named by the path (site admins pass)."""
    await PermissionService(db).require_journal_role(user, journal_id, [JournalRoleType.MANAGER])
    return user


JournalManager = Annotated[User, Depends(require_journal_manager)]


async def require_csrf_token(
    journal_id: uuid.UUID,
    user: JournalManager,
    x_csrf_token: Annotated[Optional[str], Header(alias=CSRF_HEADER)] = None,
) -> User:
    """Fail closed unless the anti-forgery header matches the caller's token."""
    verify_csrf_token(x_csrf_token, user.id, journal_id)
    return user


CsrfProtectedManager = Annotated[User, Depends(require_csrf_token)]


def get_lifecycle_hooks() -> LifecycleHooks:
    """Hook registry used by lifecycle operations; overridable in tests."""
    return default_hooks


Hooks = Annotated[LifecycleHooks, Depends(get_lifecycle_hooks)]


def get_file_manager() -> PublicFileManager:
    """Journal public files (cover images)."""
    return PublicFileManager()


FileManager = Annotated[PublicFileManager, Depends(get_file_manager)]
