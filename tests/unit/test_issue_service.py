"""
Tests for the issue store and DOI assigner.
"""

import uuid
from datetime import datetime, timezone

import pytest

from src.kernel.exceptions import AuthorizationError, FormValidationError, NotFoundError
from src.kernel.identifiers.doi_service import DoiService
from src.kernel.issues.collector import IssueCollector
from src.kernel.issues.issue_service import IssueService
from src.kernel.models import DoiStatus, IssueAccessStatus
from src.kernel.models.base import enum_value
from src.kernel.patch import Patch
from src.kernel.submissions.publication_service import PublicationService

from tests.conftest import create_issue, create_submission


class TestIssueService:
    @pytest.mark.asyncio
    async def test_add_creates_unpublished_issue(self, db_session, journal):
        issue = await IssueService(db_session).add(journal.id, Patch(volume=4, number="2", year=2025))

        assert issue.published is False
        assert issue.identification == "Vol. 4 No. 2 (2025)"

    @pytest.mark.asyncio
    async def test_add_refuses_lifecycle_fields(self, db_session, journal):
        with pytest.raises(ValueError):
            await IssueService(db_session).add(journal.id, Patch(volume=1, published=True))

    @pytest.mark.asyncio
    async def test_edit_explicit_null_clears(self, db_session, journal):
        issue = await create_issue(
            db_session, journal,
            access_status=IssueAccessStatus.SUBSCRIPTION,
            open_access_date=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )

        changed = await IssueService(db_session).edit(issue, Patch(open_access_date=None))

        assert issue.open_access_date is None
        assert enum_value(issue.access_status) == IssueAccessStatus.SUBSCRIPTION.value
        assert list(changed) == ["open_access_date"]

    @pytest.mark.asyncio
    async def test_get_for_journal(self, db_session, journal, other_journal):
        service = IssueService(db_session)
        issue = await create_issue(db_session, other_journal)

        with pytest.raises(AuthorizationError):
            await service.get_for_journal(journal.id, issue.id)
        with pytest.raises(NotFoundError):
            await service.get_for_journal(journal.id, uuid.uuid4())
        assert (await service.get_for_journal(other_journal.id, issue.id)).id == issue.id

    @pytest.mark.asyncio
    async def test_get_many_published_ordering(self, db_session, journal, other_journal):
        old = await create_issue(
            db_session, journal, volume=1, published=True,
            date_published=datetime(2022, 1, 1, tzinfo=timezone.utc),
        )
        new = await create_issue(
            db_session, journal, volume=2, published=True,
            date_published=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        await create_issue(db_session, journal, volume=3)
        await create_issue(
            db_session, other_journal, published=True,
            date_published=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )

        service = IssueService(db_session)
        collector = (
            IssueCollector()
            .filter_by_journal_ids([journal.id])
            .filter_by_published(True)
            .order_by(IssueCollector.ORDERBY_PUBLISHED_ISSUES)
        )

        assert [i.id for i in await service.get_many(collector)] == [new.id, old.id]
        assert await service.count(collector) == 2
        assert (await service.get_latest_published(journal.id)).id == new.id

    def test_unknown_ordering(self):
        with pytest.raises(ValueError):
            IssueCollector().order_by("alphabetical")

    @pytest.mark.asyncio
    async def test_update_current(self, db_session, journal, other_journal):
        service = IssueService(db_session)
        issue = await create_issue(db_session, journal)
        foreign = await create_issue(db_session, other_journal)

        await service.update_current(journal.id, issue)
        assert (await service.get_current(journal.id)).id == issue.id

        # No issue given and none published: pointer is unset
        assert await service.update_current(journal.id) is None
        assert await service.get_current(journal.id) is None

        with pytest.raises(AuthorizationError):
            await service.update_current(journal.id, foreign)

    @pytest.mark.asyncio
    async def test_count_publications(self, db_session, journal):
        full = await create_issue(db_session, journal, volume=1)
        empty = await create_issue(db_session, journal, volume=2)
        await create_submission(db_session, journal, full)
        await create_submission(db_session, journal, full)

        counts = await IssueService(db_session).count_publications([full.id, empty.id])
        assert counts == {full.id: 2, empty.id: 0}


class TestPublicationSchedule:
    @pytest.mark.asyncio
    async def test_schedule_into_unpublished_issue(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(
            db_session, journal, publication_statuses=("queued",), status="queued",
        )
        service = PublicationService(db_session)
        publication = submission.publications[0]

        status = await service.schedule(publication, issue)

        assert status.value == "scheduled"
        assert publication.issue_id == issue.id
        assert enum_value((await service.submissions.get(submission.id)).status) == "scheduled"

    @pytest.mark.asyncio
    async def test_schedule_into_published_issue(self, db_session, journal):
        published_on = datetime(2024, 5, 1, tzinfo=timezone.utc)
        issue = await create_issue(db_session, journal, published=True, date_published=published_on)
        submission = await create_submission(
            db_session, journal, publication_statuses=("queued",), status="queued",
        )
        publication = submission.publications[0]

        status = await PublicationService(db_session).schedule(publication, issue)

        assert status.value == "published"
        # SQLite hands back naive datetimes once the row is reloaded
        assert publication.date_published.replace(tzinfo=None) == published_on.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_get_by_issue_in_toc_order(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        await create_submission(
            db_session, journal, issue,
            publication_statuses=("scheduled", "scheduled"),
        )

        publications = await PublicationService(db_session).get_by_issue(issue.id)
        assert [p.seq for p in publications] == [1, 2]


class TestDoiService:
    @pytest.mark.asyncio
    async def test_generated_doi(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        doi = await DoiService(db_session, registrant="10.1234").create_doi(issue)
        assert doi.doi == f"10.1234/jtest.i{issue.id.hex[:8]}"

    @pytest.mark.asyncio
    async def test_existing_doi_kept(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        service = DoiService(db_session)
        first = await service.create_doi(issue, "10.5555/custom")
        assert (await service.create_doi(issue)).doi == first.doi == "10.5555/custom"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["11.1/x", "10.5555", "doi:10.1/x"])
    async def test_invalid_doi(self, db_session, journal, value):
        issue = await create_issue(db_session, journal)
        with pytest.raises(FormValidationError):
            await DoiService(db_session).create_doi(issue, value)

    @pytest.mark.asyncio
    async def test_doi_taken_by_other_issue(self, db_session, journal):
        first = await create_issue(db_session, journal, volume=1)
        second = await create_issue(db_session, journal, volume=2)
        service = DoiService(db_session)
        await service.create_doi(first, "10.5555/taken")

        with pytest.raises(FormValidationError):
            await service.create_doi(second, "10.5555/taken")

    @pytest.mark.asyncio
    async def test_registered_doi_goes_stale(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        service = DoiService(db_session)
        doi = await service.create_doi(issue)
        doi.status = DoiStatus.REGISTERED
        await db_session.flush()

        await service.issue_updated(issue)
        assert doi.status == DoiStatus.STALE

    @pytest.mark.asyncio
    async def test_clear_dois(self, db_session, journal):
        issue = await create_issue(db_session, journal)
        submission = await create_submission(db_session, journal, issue)
        submission.publications[0].doi = "10.5555/article.1"
        await db_session.flush()
        service = DoiService(db_session)
        await service.create_doi(issue)

        assert await service.clear_issue_doi(issue) is True
        assert await service.clear_issue_doi(issue) is False
        assert await service.clear_publication_dois(issue) == [submission.publications[0].id]
        assert submission.publications[0].doi is None
