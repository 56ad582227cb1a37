"""
Journal (context) store and publishing settings.
"""

import uuid
from typing import Dict, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import FormValidationError, NotFoundError
from src.kernel.models.base import enum_value
from src.kernel.models.event_log import EventType
from src.kernel.models.journal import Journal, PublishingMode
from src.kernel.models.user import JournalRole, User, UserRole
from src.kernel.patch import Patch
from src.logging_config import get_logger

logger = get_logger(__name__)

SETTINGS_FIELDS = frozenset({"name", "description", "publishing_mode", "delayed_open_access_duration"})


class JournalService:
    """Journal store."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def get(self, journal_id: uuid.UUID) -> Journal:
        journal = await self.session.get(Journal, journal_id)
        if journal is None:
            raise NotFoundError("Journal", journal_id)
        return journal

    async def list_for_user(self, user: User) -> List[Journal]:
        """Journals the user holds a role in; site admins see every journal."""
        query = select(Journal)
        if enum_value(user.role) != UserRole.ADMIN.value:
            query = query.where(
                Journal.id.in_(select(JournalRole.journal_id).where(JournalRole.user_id == user.id))
            )
        result = await self.session.execute(query.order_by(Journal.path))
        return list(result.scalars().all())

    async def edit_settings(
        self,
        journal: Journal,
        patch: Patch,
        user_id: Optional[uuid.UUID] = None,
    ) -> Dict[str, object]:
        """
        Update the journal's publishing settings.

        Raises:
            FormValidationError: unknown publishing mode or negative delay
        """
        errors: Dict[str, str] = {}
        mode = patch.get("publishing_mode")
        if patch.is_set("publishing_mode"):
            try:
                PublishingMode(mode)
            except ValueError:
                errors["publishing_mode"] = f"Unknown publishing mode '{mode}'"
        delay = patch.get("delayed_open_access_duration")
        if patch.is_set("delayed_open_access_duration") and (delay is None or delay < 0):
            errors["delayed_open_access_duration"] = "Delay must be zero or a positive number of months"
        if patch.is_set("name") and not patch["name"]:
            errors["name"] = "A journal needs a name"
        if errors:
            raise FormValidationError(errors)

        changed = patch.apply(journal, allowed=SETTINGS_FIELDS)
        if changed:
            await self.event_store.log(
                event_type=EventType.JOURNAL_SETTINGS_UPDATED,
                entity_type="journal",
                entity_id=journal.id,
                user_id=user_id,
                payload={"changed": {field: getattr(journal, field) for field in changed}},
            )
        await self.session.flush()
        logger.info(
            "Journal settings updated",
            extra={"journal_id": str(journal.id), "fields": sorted(changed)},
        )
        return changed

    async def get_enabled_users(self, journal_id: uuid.UUID) -> List[User]:
        """Active users holding any role in the journal, each listed once."""
        query = (
            select(User)
            .where(
                and_(
                    User.is_active.is_(True),
                    User.id.in_(select(JournalRole.user_id).where(JournalRole.journal_id == journal_id)),
                )
            )
            .order_by(User.email)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
