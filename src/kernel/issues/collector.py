"""
Query builder for issue lists.

    collector = (
        IssueCollector()
        .filter_by_journal_ids([journal.id])
        .filter_by_published(True)
        .order_by(IssueCollector.ORDERBY_PUBLISHED_ISSUES)
    )
    issues = await issue_service.get_many(collector)
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy import Select, and_, select

from src.kernel.models.issue import Issue


class IssueCollector:
    """Filters and ordering for IssueService.get_many()."""

    # Newest publication date first; the head of this list is the journal's
    # natural current issue.
    ORDERBY_PUBLISHED_ISSUES = "published_issues"
    # Future issues: newest created first
    ORDERBY_UNPUBLISHED_ISSUES = "unpublished_issues"

    def __init__(self) -> None:
        self.journal_ids: Optional[List[uuid.UUID]] = None
        self.issue_ids: Optional[List[uuid.UUID]] = None
        self.published: Optional[bool] = None
        self.ordering: Optional[str] = None
        self.limit: Optional[int] = None
        self.offset: int = 0

    def filter_by_journal_ids(self, journal_ids: Iterable[uuid.UUID]) -> "IssueCollector":
        self.journal_ids = list(journal_ids)
        return self

    def filter_by_issue_ids(self, issue_ids: Iterable[uuid.UUID]) -> "IssueCollector":
        self.issue_ids = list(issue_ids)
        return self

    def filter_by_published(self, published: bool) -> "IssueCollector":
        self.published = published
        return self

    def order_by(self, ordering: str) -> "IssueCollector":
        if ordering not in (self.ORDERBY_PUBLISHED_ISSUES, self.ORDERBY_UNPUBLISHED_ISSUES):
            raise ValueError(f"Unknown issue ordering: {ordering}")
        self.ordering = ordering
        return self

    def paginate(self, limit: int, offset: int = 0) -> "IssueCollector":
        self.limit = limit
        self.offset = offset
        return self

    def get_query(self) -> Select:
        conditions = []
        if self.journal_ids is not None:
            conditions.append(Issue.journal_id.in_(self.journal_ids))
        if self.issue_ids is not None:
            conditions.append(Issue.id.in_(self.issue_ids))
        if self.published is not None:
            conditions.append(Issue.published == self.published)

        query = select(Issue)
        if conditions:
            query = query.where(and_(*conditions))

        if self.ordering == self.ORDERBY_PUBLISHED_ISSUES:
            query = query.order_by(
                Issue.date_published.desc().nulls_last(),
                Issue.year.desc().nulls_last(),
                Issue.volume.desc().nulls_last(),
                Issue.created_at.desc(),
            )
        elif self.ordering == self.ORDERBY_UNPUBLISHED_ISSUES:
            query = query.order_by(Issue.created_at.desc())

        if self.limit is not None:
            query = query.limit(self.limit).offset(self.offset)
        return query
