"""
Submission store and submission status derivation.
"""

import uuid
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.events.event_store import EventStore
from src.kernel.models.base import enum_value
from src.kernel.models.event_log import EventType
from src.kernel.models.submission import Publication, Submission, SubmissionStatus
from src.kernel.submissions.collector import SubmissionCollector


def derive_submission_status(
    publications: Iterable[Publication],
    current: SubmissionStatus = SubmissionStatus.QUEUED,
) -> SubmissionStatus:
    """
    Aggregate status of a submission from its publications.

    Any published version makes the submission published; otherwise a
    scheduled version makes it scheduled. Declined submissions stay declined
    until something is scheduled or published.
    """
    statuses = {enum_value(p.status) for p in publications}
    if SubmissionStatus.PUBLISHED.value in statuses:
        return SubmissionStatus.PUBLISHED
    if SubmissionStatus.SCHEDULED.value in statuses:
        return SubmissionStatus.SCHEDULED
    if enum_value(current) == SubmissionStatus.DECLINED.value:
        return SubmissionStatus.DECLINED
    return SubmissionStatus.QUEUED


class SubmissionService:
    """Submission store."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)

    async def get(self, submission_id: uuid.UUID) -> Optional[Submission]:
        """Fresh copy of the submission and its publications."""
        query = (
            select(Submission)
            .where(Submission.id == submission_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, collector: SubmissionCollector) -> List[Submission]:
        result = await self.session.execute(collector.get_query())
        return list(result.scalars().all())

    async def update_status(
        self,
        submission: Submission,
        user_id: Optional[uuid.UUID] = None,
    ) -> SubmissionStatus:
        """Recompute and persist the submission's status from its publications."""
        previous = enum_value(submission.status)
        status = derive_submission_status(submission.publications, submission.status)

        if submission.publications:
            latest = max(submission.publications, key=lambda p: p.version)
            submission.current_publication_id = latest.id

        if status.value != previous:
            submission.status = status
            await self.event_store.log(
                event_type=EventType.SUBMISSION_STATUS_CHANGED,
                entity_type="submission",
                entity_id=submission.id,
                user_id=user_id,
                payload={
                    "journal_id": submission.journal_id,
                    "from_status": previous,
                    "to_status": status.value,
                },
            )
        await self.session.flush()
        return status
