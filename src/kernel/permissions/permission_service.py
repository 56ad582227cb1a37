"""
Journal role checks.
"""

import uuid
from typing import Iterable, Set

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.exceptions import AuthorizationError
from src.kernel.models.base import enum_value
from src.kernel.models.user import JournalRole, JournalRoleType, User, UserRole


class PermissionService:
    """
    Checks the roles a user holds in a journal.

    Site admins pass every check.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_roles(self, user: User, journal_id: uuid.UUID) -> Set[str]:
        query = select(JournalRole.role).where(
            and_(
                JournalRole.user_id == user.id,
                JournalRole.journal_id == journal_id,
            )
        )
        result = await self.session.execute(query)
        return {enum_value(role) for role in result.scalars().all()}

    async def has_journal_role(
        self,
        user: User,
        journal_id: uuid.UUID,
        roles: Iterable[JournalRoleType],
    ) -> bool:
        if enum_value(user.role) == UserRole.ADMIN.value:
            return True
        held = await self.get_roles(user, journal_id)
        return any(role.value in held for role in roles)

    async def require_journal_role(
        self,
        user: User,
        journal_id: uuid.UUID,
        roles: Iterable[JournalRoleType],
    ) -> None:
        """
        Raises:
            AuthorizationError: the user holds none of the roles
        """
        roles = list(roles)
        if not await self.has_journal_role(user, journal_id, roles):
            raise AuthorizationError(
                f"Requires one of the roles {', '.join(r.value for r in roles)} in this journal"
            )

    async def grant_role(self, user_id: uuid.UUID, journal_id: uuid.UUID, role: JournalRoleType) -> JournalRole:
        assignment = JournalRole(user_id=user_id, journal_id=journal_id, role=role)
        self.session.add(assignment)
        await self.session.flush()
        return assignment
