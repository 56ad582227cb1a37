"""
Query builder for submission lists.
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy import Select, and_, exists, select

from src.kernel.models.submission import Publication, Submission, SubmissionStatus


class SubmissionCollector:
    """Filters for SubmissionService.get_many()."""

    def __init__(self) -> None:
        self.journal_ids: Optional[List[uuid.UUID]] = None
        self.issue_ids: Optional[List[uuid.UUID]] = None
        self.statuses: Optional[List[SubmissionStatus]] = None

    def filter_by_journal_ids(self, journal_ids: Iterable[uuid.UUID]) -> "SubmissionCollector":
        self.journal_ids = list(journal_ids)
        return self

    def filter_by_issue_ids(self, issue_ids: Iterable[uuid.UUID]) -> "SubmissionCollector":
        """Submissions with at least one publication assigned to one of the issues."""
        self.issue_ids = list(issue_ids)
        return self

    def filter_by_status(self, statuses: Iterable[SubmissionStatus]) -> "SubmissionCollector":
        self.statuses = list(statuses)
        return self

    def get_query(self) -> Select:
        conditions = []
        if self.journal_ids is not None:
            conditions.append(Submission.journal_id.in_(self.journal_ids))
        if self.statuses is not None:
            conditions.append(Submission.status.in_([s.value for s in self.statuses]))
        if self.issue_ids is not None:
            conditions.append(
                exists().where(
                    and_(
                        Publication.submission_id == Submission.id,
                        Publication.issue_id.in_(self.issue_ids),
                    )
                )
            )

        query = select(Submission)
        if conditions:
            query = query.where(and_(*conditions))
        return query.order_by(Submission.created_at, Submission.id)
