"""
Issue store: CRUD and queries over issues plus the journal's current-issue pointer.
"""

import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.exceptions import AuthorizationError, NotFoundError
from src.kernel.issues.collector import IssueCollector
from src.kernel.models.issue import Issue
from src.kernel.models.journal import Journal
from src.kernel.models.submission import Publication
from src.kernel.patch import Patch
from src.logging_config import get_logger

logger = get_logger(__name__)

# Fields an edit() patch may touch
EDITABLE_FIELDS = frozenset({
    "volume", "number", "year", "title", "description",
    "show_volume", "show_number", "show_year", "show_title",
    "published", "date_published",
    "access_status", "open_access_date",
    "cover_image", "cover_image_alt_text",
})


class IssueService:
    """
    Issue store.

    Every read and write of Journal.current_issue_id goes through
    get_current() / update_current().
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, issue_id: uuid.UUID) -> Optional[Issue]:
        result = await self.session.execute(select(Issue).where(Issue.id == issue_id))
        return result.scalar_one_or_none()

    async def get_for_journal(self, journal_id: uuid.UUID, issue_id: uuid.UUID) -> Issue:
        """
        Load an issue the caller's journal owns.

        Raises:
            NotFoundError: no such issue
            AuthorizationError: the issue belongs to another journal
        """
        issue = await self.get(issue_id)
        if issue is None:
            raise NotFoundError("Issue", issue_id)
        if issue.journal_id != journal_id:
            raise AuthorizationError("Issue does not belong to this journal")
        return issue

    async def add(self, journal_id: uuid.UUID, patch: Patch) -> Issue:
        """Create an unpublished issue."""
        issue = Issue(journal_id=journal_id, published=False)
        patch.apply(issue, allowed=EDITABLE_FIELDS - {"published", "date_published"})
        self.session.add(issue)
        await self.session.flush()
        logger.info("Issue created", extra={"issue_id": str(issue.id), "journal_id": str(journal_id)})
        return issue

    async def edit(self, issue: Issue, patch: Patch) -> Dict[str, object]:
        """
        Apply a partial update. Fields set to None in the patch are written as NULL;
        fields absent from the patch keep their stored value.

        Returns the previous values of changed fields.
        """
        changed = patch.apply(issue, allowed=EDITABLE_FIELDS)
        await self.session.flush()
        return changed

    async def delete(self, issue: Issue) -> None:
        await self.session.delete(issue)
        await self.session.flush()

    async def get_many(self, collector: IssueCollector) -> List[Issue]:
        result = await self.session.execute(collector.get_query())
        return list(result.scalars().all())

    async def count(self, collector: IssueCollector) -> int:
        query = select(func.count()).select_from(collector.get_query().order_by(None).subquery())
        result = await self.session.execute(query)
        return result.scalar_one()

    async def count_publications(self, issue_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """Number of publications assigned to each issue."""
        ids = list(issue_ids)
        if not ids:
            return {}
        query = (
            select(Publication.issue_id, func.count(Publication.id))
            .where(Publication.issue_id.in_(ids))
            .group_by(Publication.issue_id)
        )
        result = await self.session.execute(query)
        counts = {issue_id: 0 for issue_id in ids}
        for issue_id, count in result.all():
            counts[issue_id] = count
        return counts

    async def get_current(self, journal_id: uuid.UUID) -> Optional[Issue]:
        journal = await self._get_journal(journal_id)
        if journal.current_issue_id is None:
            return None
        return await self.get(journal.current_issue_id)

    async def update_current(
        self,
        journal_id: uuid.UUID,
        issue: Optional[Issue] = None,
    ) -> Optional[Issue]:
        """
        Point the journal at ``issue``, replacing any previous current issue.

        With no issue the pointer is re-derived: the most recently published
        issue of the journal, or unset when the journal has none.
        """
        journal = await self._get_journal(journal_id)
        if issue is None:
            issue = await self.get_latest_published(journal_id)
        elif issue.journal_id != journal_id:
            raise AuthorizationError("Issue does not belong to this journal")

        journal.current_issue_id = issue.id if issue is not None else None
        await self.session.flush()
        return issue

    async def get_latest_published(self, journal_id: uuid.UUID) -> Optional[Issue]:
        collector = (
            IssueCollector()
            .filter_by_journal_ids([journal_id])
            .filter_by_published(True)
            .order_by(IssueCollector.ORDERBY_PUBLISHED_ISSUES)
        )
        issues = await self.get_many(collector.paginate(1))
        return issues[0] if issues else None

    async def _get_journal(self, journal_id: uuid.UUID) -> Journal:
        # populate_existing: the pointer may have been changed by an ON DELETE SET NULL
        query = select(Journal).where(Journal.id == journal_id).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        journal = result.scalar_one_or_none()
        if journal is None:
            raise NotFoundError("Journal", journal_id)
        return journal
