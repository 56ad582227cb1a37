"""
Tests for the issue lifecycle: publish, unpublish, set current and delete.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import AuthorizationError, LifecycleVetoedError, NotFoundError
from src.kernel.identifiers.doi_service import DoiService
from src.kernel.issues.issue_service import IssueService
from src.kernel.models import (
    Doi,
    EventType,
    Issue,
    IssueAccessStatus,
    Journal,
    JournalRoleType,
    Notification,
    PublishingMode,
    Submission,
    SubmissionStatus,
)
from src.kernel.models.base import enum_value
from src.orchestration.hooks import LifecyclePoint
from src.orchestration.issue_lifecycle import (
    EVENT_DATA_CHANGED,
    GLOBAL_EVENT_ISSUE_PUBLISHED,
    IssueLifecycleManager,
)

from tests.conftest import create_issue, create_submission, create_user

NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def lifecycle(db_session, hooks) -> IssueLifecycleManager:
    return IssueLifecycleManager(db_session, hooks=hooks, now=lambda: NOW)


async def _reload_submission(session, submission_id) -> Submission:
    result = await session.execute(
        select(Submission).where(Submission.id == submission_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _current_id(session, journal_id):
    current = await IssueService(session).get_current(journal_id)
    return current.id if current is not None else None


async def _count_events(session, event_type: EventType) -> int:
    return await EventStore(session).count_events(event_type=event_type)


class TestPublish:
    @pytest.mark.asyncio
    async def test_first_publish(self, db_session, lifecycle, journal, manager):
        issue = await create_issue(db_session, journal)

        result = await lifecycle.publish(journal.id, issue.id, manager.id)

        assert result.status is True
        assert result.event == EVENT_DATA_CHANGED
        assert result.global_event == {
            "name": GLOBAL_EVENT_ISSUE_PUBLISHED,
            "data": {"id": str(issue.id)},
        }
        assert issue.published is True
        assert issue.date_published == NOW
        assert await _current_id(db_session, journal.id) == issue.id
        assert await _count_events(db_session, EventType.ISSUE_PUBLISHED) == 1

    @pytest.mark.asyncio
    async def test_scheduled_publications_become_published(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(db_session, journal, issue)

        result = await lifecycle.publish(journal.id, issue.id)

        submission = await _reload_submission(db_session, submission.id)
        assert enum_value(submission.status) == SubmissionStatus.PUBLISHED.value
        assert [enum_value(p.status) for p in submission.publications] == [SubmissionStatus.PUBLISHED.value]
        assert submission.publications[0].date_published is not None

        [outcome] = result.outcomes
        assert outcome.succeeded
        assert outcome.submission_id == submission.id
        assert outcome.publication_ids == [submission.publications[0].id]
        assert outcome.submission_status == SubmissionStatus.PUBLISHED.value

    @pytest.mark.asyncio
    async def test_cascade_skips_queued_submissions(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        queued = await create_submission(
            db_session, journal, issue,
            status=SubmissionStatus.QUEUED,
            publication_statuses=(SubmissionStatus.QUEUED,),
        )

        result = await lifecycle.publish(journal.id, issue.id)

        assert result.outcomes == []
        queued = await _reload_submission(db_session, queued.id)
        assert enum_value(queued.publications[0].status) == SubmissionStatus.QUEUED.value

    @pytest.mark.asyncio
    async def test_confirmation_required_mutates_nothing(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(db_session, journal, issue)

        result = await lifecycle.publish(journal.id, issue.id, assign_identifiers=True, confirmed=False)

        assert result.confirmation_required is True
        assert result.event is None
        assert issue.published is False
        assert issue.date_published is None
        assert await _current_id(db_session, journal.id) is None
        assert await DoiService(db_session).get_for_issue(issue) is None
        submission = await _reload_submission(db_session, submission.id)
        assert enum_value(submission.status) == SubmissionStatus.SCHEDULED.value
        assert await _count_events(db_session, EventType.ISSUE_PUBLISHED) == 0

    @pytest.mark.asyncio
    async def test_confirmed_publish_assigns_doi(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)

        await lifecycle.publish(journal.id, issue.id, assign_identifiers=True, confirmed=True)

        doi = await DoiService(db_session).get_for_issue(issue)
        assert doi is not None
        assert doi.doi == f"10.5555/{journal.path}.i{issue.id.hex[:8]}"

    @pytest.mark.asyncio
    async def test_republish_keeps_date_and_skips_cascade(self, db_session, journal, hooks):
        issue = await create_issue(db_session, journal, published=True, date_published=NOW)
        later = datetime(2025, 1, 1, tzinfo=timezone.utc)
        manager = IssueLifecycleManager(db_session, hooks=hooks, now=lambda: later)
        manager.dois.issue_updated = AsyncMock()

        result = await manager.publish(journal.id, issue.id)

        assert result.outcomes == []
        assert issue.date_published.replace(tzinfo=timezone.utc) == NOW
        manager.dois.issue_updated.assert_not_awaited()
        assert await _current_id(db_session, journal.id) == issue.id

    @pytest.mark.asyncio
    async def test_subscription_journal_applies_delay(self, db_session, lifecycle, journal):
        journal.publishing_mode = PublishingMode.SUBSCRIPTION
        journal.delayed_open_access_duration = 6
        await db_session.flush()
        issue = await create_issue(db_session, journal)

        await lifecycle.publish(journal.id, issue.id)

        assert issue.access_status == IssueAccessStatus.SUBSCRIPTION
        assert issue.open_access_date == datetime(2024, 9, 15, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_send_notification_to_enabled_users(self, db_session, lifecycle, journal, manager, reader):
        await create_user(db_session, "gone@example.com", journal, JournalRoleType.READER, is_active=False)
        issue = await create_issue(db_session, journal)

        result = await lifecycle.publish(journal.id, issue.id, send_notification=True)

        assert result.content["notifications_sent"] == 2
        notified = await db_session.execute(select(Notification.user_id))
        assert set(notified.scalars().all()) == {manager.id, reader.id}

    @pytest.mark.asyncio
    async def test_no_notifications_when_publishing_elsewhere(self, db_session, lifecycle, journal, reader):
        journal.publishing_mode = PublishingMode.NONE
        await db_session.flush()
        issue = await create_issue(db_session, journal)

        result = await lifecycle.publish(journal.id, issue.id, send_notification=True)

        assert result.content["notifications_sent"] == 0

    @pytest.mark.asyncio
    async def test_issue_of_other_journal(self, db_session, lifecycle, journal, other_journal):
        issue = await create_issue(db_session, other_journal)

        with pytest.raises(AuthorizationError):
            await lifecycle.publish(journal.id, issue.id)
        assert issue.published is False

    @pytest.mark.asyncio
    async def test_missing_issue(self, lifecycle, journal):
        with pytest.raises(NotFoundError):
            await lifecycle.publish(journal.id, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_pre_publish_veto(self, db_session, lifecycle, hooks, journal):
        issue = await create_issue(db_session, journal)
        hooks.register(LifecyclePoint.PRE_PUBLISH, lambda event: event.veto("Missing cover"))

        with pytest.raises(LifecycleVetoedError):
            await lifecycle.publish(journal.id, issue.id)

        assert issue.published is False
        assert await _current_id(db_session, journal.id) is None

    @pytest.mark.asyncio
    async def test_hooks_see_outcomes_and_deferred_effects_run(self, db_session, lifecycle, hooks, journal):
        issue = await create_issue(db_session, journal)
        await create_submission(db_session, journal, issue)
        seen = []

        def after_publish(event):
            seen.append(len(event.data["outcomes"]))
            event.defer(lambda: seen.append("deferred"))

        hooks.register(LifecyclePoint.POST_PUBLISH, after_publish)

        await lifecycle.publish(journal.id, issue.id)
        assert seen == [1, "deferred"]


class TestUnpublish:
    @pytest.mark.asyncio
    async def test_published_publications_become_scheduled(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(db_session, journal, issue)
        await lifecycle.publish(journal.id, issue.id)

        result = await lifecycle.unpublish(journal.id, issue.id)

        assert issue.published is False
        assert issue.date_published is None
        submission = await _reload_submission(db_session, submission.id)
        assert enum_value(submission.status) == SubmissionStatus.SCHEDULED.value
        assert enum_value(submission.publications[0].status) == SubmissionStatus.SCHEDULED.value
        assert [o.succeeded for o in result.outcomes] == [True]

    @pytest.mark.asyncio
    async def test_current_pointer_rederived(self, db_session, lifecycle, journal):
        older = await create_issue(db_session, journal, volume=1)
        newer = await create_issue(db_session, journal, volume=2)
        await lifecycle.publish(journal.id, older.id)
        await lifecycle.publish(journal.id, newer.id)
        older.date_published = datetime(2023, 1, 1, tzinfo=timezone.utc)
        await db_session.flush()

        await lifecycle.unpublish(journal.id, newer.id)

        assert await _current_id(db_session, journal.id) == older.id

    @pytest.mark.asyncio
    async def test_unpublish_last_issue_unsets_current(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        await lifecycle.publish(journal.id, issue.id)

        await lifecycle.unpublish(journal.id, issue.id)

        assert await _current_id(db_session, journal.id) is None

    @pytest.mark.asyncio
    async def test_publish_unpublish_publish_round_trip(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        lifecycle.dois.issue_updated = AsyncMock()

        await lifecycle.publish(journal.id, issue.id)
        await lifecycle.unpublish(journal.id, issue.id)
        await lifecycle.publish(journal.id, issue.id)

        assert issue.published is True
        assert lifecycle.dois.issue_updated.await_count == 3

    @pytest.mark.asyncio
    async def test_pre_unpublish_veto(self, db_session, lifecycle, hooks, journal):
        issue = await create_issue(db_session, journal)
        await lifecycle.publish(journal.id, issue.id)
        hooks.register(LifecyclePoint.PRE_UNPUBLISH, lambda event: event.veto("Locked"))

        with pytest.raises(LifecycleVetoedError):
            await lifecycle.unpublish(journal.id, issue.id)
        assert issue.published is True


class TestCascadeFailure:
    @pytest.mark.asyncio
    async def test_failing_submission_is_isolated(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        good = await create_submission(db_session, journal, issue, title="Good")
        bad = await create_submission(db_session, journal, issue, title="Bad")

        original_publish = lifecycle.publications.publish

        async def flaky_publish(publication, user_id=None):
            if publication.submission_id == bad.id:
                raise NotFoundError("Submission", bad.id)
            return await original_publish(publication, user_id)

        lifecycle.publications.publish = flaky_publish

        result = await lifecycle.publish(journal.id, issue.id)

        assert result.status is True
        by_id = {outcome.submission_id: outcome for outcome in result.outcomes}
        assert by_id[good.id].succeeded is True
        assert by_id[bad.id].succeeded is False
        assert "not found" in by_id[bad.id].reason
        assert result.failed_outcomes == [by_id[bad.id]]

        good = await _reload_submission(db_session, good.id)
        bad = await _reload_submission(db_session, bad.id)
        assert enum_value(good.status) == SubmissionStatus.PUBLISHED.value
        assert enum_value(bad.status) == SubmissionStatus.SCHEDULED.value
        assert issue.published is True


class TestSetCurrent:
    @pytest.mark.asyncio
    async def test_unpublished_issue_can_be_current(self, db_session, lifecycle, journal):
        published = await create_issue(db_session, journal, volume=1)
        future = await create_issue(db_session, journal, volume=2)
        await lifecycle.publish(journal.id, published.id)

        result = await lifecycle.set_current(journal.id, future.id)

        assert result.event == EVENT_DATA_CHANGED
        assert await _current_id(db_session, journal.id) == future.id
        assert await _count_events(db_session, EventType.CURRENT_ISSUE_CHANGED) == 2

    @pytest.mark.asyncio
    async def test_single_current_issue(self, db_session, lifecycle, journal):
        issues = [await create_issue(db_session, journal, volume=v) for v in (1, 2, 3)]
        await lifecycle.publish(journal.id, issues[0].id)
        await lifecycle.set_current(journal.id, issues[2].id)
        await lifecycle.publish(journal.id, issues[1].id)

        result = await db_session.execute(
            select(Journal.current_issue_id).where(Journal.id == journal.id)
        )
        assert result.scalar_one() == issues[1].id

    @pytest.mark.asyncio
    async def test_issue_of_other_journal(self, db_session, lifecycle, journal, other_journal):
        issue = await create_issue(db_session, other_journal)
        with pytest.raises(AuthorizationError):
            await lifecycle.set_current(journal.id, issue.id)


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_current_with_only_unpublished_left(self, db_session, lifecycle, journal):
        i1 = await create_issue(db_session, journal, volume=1)
        i2 = await create_issue(db_session, journal, volume=2)
        await lifecycle.publish(journal.id, i1.id)

        await lifecycle.delete(journal.id, i1.id)

        assert await _current_id(db_session, journal.id) is None
        assert await IssueService(db_session).get(i1.id) is None
        assert await IssueService(db_session).get(i2.id) is not None

    @pytest.mark.asyncio
    async def test_delete_current_falls_back_to_latest_published(self, db_session, lifecycle, journal):
        older = await create_issue(db_session, journal, volume=1)
        newer = await create_issue(db_session, journal, volume=2)
        await lifecycle.publish(journal.id, older.id)
        await lifecycle.publish(journal.id, newer.id)
        older.date_published = datetime(2023, 1, 1, tzinfo=timezone.utc)
        await db_session.flush()

        await lifecycle.delete(journal.id, newer.id)

        assert await _current_id(db_session, journal.id) == older.id

    @pytest.mark.asyncio
    async def test_delete_non_current_keeps_pointer(self, db_session, lifecycle, journal):
        current = await create_issue(db_session, journal, volume=1)
        future = await create_issue(db_session, journal, volume=2)
        await lifecycle.publish(journal.id, current.id)

        await lifecycle.delete(journal.id, future.id)

        assert await _current_id(db_session, journal.id) == current.id

    @pytest.mark.asyncio
    async def test_delete_detaches_publications(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(db_session, journal, issue)
        await lifecycle.publish(journal.id, issue.id)

        await lifecycle.delete(journal.id, issue.id)

        submission = await _reload_submission(db_session, submission.id)
        assert enum_value(submission.status) == SubmissionStatus.QUEUED.value
        [publication] = submission.publications
        assert publication.issue_id is None
        assert enum_value(publication.status) == SubmissionStatus.QUEUED.value

    @pytest.mark.asyncio
    async def test_delete_removes_doi_and_releases_cover(self, db_session, lifecycle, journal, file_manager):
        issue = await create_issue(db_session, journal, cover_image="cover.png")
        cover = file_manager.journal_file_path(journal.id, "cover.png")
        cover.parent.mkdir(parents=True)
        cover.write_bytes(b"png")
        await DoiService(db_session).create_doi(issue)

        result = await lifecycle.delete(journal.id, issue.id)

        # The file is left for the caller to remove after commit
        assert result.released_files == ["cover.png"]
        assert cover.exists()
        assert "released_files" not in result.as_payload()
        dois = await db_session.execute(select(func.count()).select_from(Doi))
        assert dois.scalar_one() == 0
        assert await _count_events(db_session, EventType.ISSUE_DELETED) == 1

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_cover_file(self, db_session, session_maker, lifecycle, journal, file_manager):
        issue = await create_issue(db_session, journal, cover_image="cover.png")
        cover = file_manager.journal_file_path(journal.id, "cover.png")
        cover.parent.mkdir(parents=True)
        cover.write_bytes(b"png")
        failure = OperationalError("INSERT INTO event_logs", {}, Exception("disk I/O error"))

        with patch.object(lifecycle.event_store, "log_from_model", AsyncMock(side_effect=failure)):
            with pytest.raises(OperationalError):
                await lifecycle.delete(journal.id, issue.id)
        await db_session.rollback()

        async with session_maker() as session:
            stored = await session.get(Issue, issue.id)
        assert stored is not None
        assert stored.cover_image == "cover.png"
        assert cover.exists()

    @pytest.mark.asyncio
    async def test_delete_without_cover_releases_nothing(self, db_session, lifecycle, journal):
        issue = await create_issue(db_session, journal)
        result = await lifecycle.delete(journal.id, issue.id)
        assert result.released_files == []

    @pytest.mark.asyncio
    async def test_issue_of_other_journal(self, db_session, lifecycle, journal, other_journal):
        issue = await create_issue(db_session, other_journal)
        with pytest.raises(AuthorizationError):
            await lifecycle.delete(journal.id, issue.id)
        assert await IssueService(db_session).get(issue.id) is not None
