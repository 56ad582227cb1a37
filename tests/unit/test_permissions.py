"""
Tests for journal role checks and the audit trail.
"""

import pytest

from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import AuthorizationError
from src.kernel.models import EventType, JournalRoleType, UserRole
from src.kernel.models.base import enum_value
from src.kernel.permissions.permission_service import PermissionService
from src.orchestration.issue_lifecycle import IssueLifecycleManager

from tests.conftest import create_issue, create_user


class TestPermissionService:
    @pytest.mark.asyncio
    async def test_roles_are_per_journal(self, db_session, journal, other_journal, manager):
        service = PermissionService(db_session)

        assert await service.get_roles(manager, journal.id) == {"manager"}
        assert await service.has_journal_role(manager, journal.id, [JournalRoleType.MANAGER])
        assert not await service.has_journal_role(manager, other_journal.id, [JournalRoleType.MANAGER])

    @pytest.mark.asyncio
    async def test_require_role(self, db_session, journal, reader):
        with pytest.raises(AuthorizationError):
            await PermissionService(db_session).require_journal_role(
                reader, journal.id, [JournalRoleType.MANAGER, JournalRoleType.EDITOR],
            )

    @pytest.mark.asyncio
    async def test_site_admin_passes(self, db_session, journal):
        admin = await create_user(db_session, "admin@example.com", role=UserRole.ADMIN)
        await PermissionService(db_session).require_journal_role(admin, journal.id, [JournalRoleType.MANAGER])


class TestAuditTrail:
    @pytest.mark.asyncio
    async def test_issue_history_newest_first(self, db_session, hooks, journal, manager):
        issue = await create_issue(db_session, journal)
        lifecycle = IssueLifecycleManager(db_session, hooks=hooks)

        await lifecycle.publish(journal.id, issue.id, manager.id)
        await lifecycle.unpublish(journal.id, issue.id, manager.id)

        history = await EventStore(db_session).get_entity_history("issue", issue.id)
        types = [enum_value(event.event_type) for event in history]
        assert set(types) == {EventType.ISSUE_PUBLISHED.value, EventType.ISSUE_UNPUBLISHED.value}
        assert all(event.user_id == manager.id for event in history)

        published = await EventStore(db_session).get_entity_history(
            "issue", issue.id, event_types=[EventType.ISSUE_PUBLISHED],
        )
        assert len(published) == 1
        assert published[0].payload["first_publish"] is True
