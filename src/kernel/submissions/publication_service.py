"""
Publication store.

Publication status is recomputed on publish(): a publication assigned to an
issue that is not yet published is Scheduled, anything else is Published.
unpublish() returns it to Queued. Both keep the owning submission's status
in step.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import NotFoundError
from src.kernel.models.base import enum_value
from src.kernel.models.event_log import EventType
from src.kernel.models.issue import Issue
from src.kernel.models.submission import Publication, SubmissionStatus
from src.kernel.patch import Patch
from src.kernel.submissions.submission_service import SubmissionService

EDITABLE_FIELDS = frozenset({"issue_id", "status", "seq", "title", "doi", "date_published"})


class PublicationService:
    """Publication store."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.event_store = EventStore(session)
        self.submissions = SubmissionService(session)

    async def get(self, publication_id: uuid.UUID) -> Optional[Publication]:
        result = await self.session.execute(
            select(Publication).where(Publication.id == publication_id)
        )
        return result.scalar_one_or_none()

    async def get_by_issue(self, issue_id: uuid.UUID) -> List[Publication]:
        """Publications scheduled into the issue, in table of contents order."""
        result = await self.session.execute(
            select(Publication)
            .where(Publication.issue_id == issue_id)
            .order_by(Publication.seq, Publication.id)
        )
        return list(result.scalars().all())

    async def edit(self, publication: Publication, patch: Patch) -> Dict[str, object]:
        """
        Partial update without status recomputation.

        An explicit None in the patch clears the column (e.g. issue_id).
        """
        changed = patch.apply(publication, allowed=EDITABLE_FIELDS)
        await self.session.flush()
        return changed

    async def publish(
        self,
        publication: Publication,
        user_id: Optional[uuid.UUID] = None,
    ) -> SubmissionStatus:
        """
        Publish the publication, or schedule it when its issue is not published yet.

        Recomputes and persists the owning submission's status.
        """
        issue: Optional[Issue] = None
        if publication.issue_id is not None:
            issue = await self.session.get(Issue, publication.issue_id)

        if issue is not None and not issue.published:
            new_status = SubmissionStatus.SCHEDULED
        else:
            new_status = SubmissionStatus.PUBLISHED
            if publication.date_published is None:
                publication.date_published = (
                    issue.date_published if issue is not None and issue.date_published
                    else datetime.now(timezone.utc)
                )

        await self._set_status(publication, new_status, user_id)
        await self._update_submission(publication, user_id)
        return new_status

    async def unpublish(
        self,
        publication: Publication,
        user_id: Optional[uuid.UUID] = None,
    ) -> SubmissionStatus:
        """Return the publication to the editing queue (keeps its issue assignment)."""
        await self._set_status(publication, SubmissionStatus.QUEUED, user_id)
        await self._update_submission(publication, user_id)
        return SubmissionStatus.QUEUED

    async def schedule(
        self,
        publication: Publication,
        issue: Issue,
        user_id: Optional[uuid.UUID] = None,
    ) -> SubmissionStatus:
        """Assign the publication to an issue, then derive its status from that issue."""
        await self.edit(publication, Patch(issue_id=issue.id))
        await self.event_store.log(
            event_type=EventType.PUBLICATION_SCHEDULED,
            entity_type="publication",
            entity_id=publication.id,
            user_id=user_id,
            payload={"issue_id": issue.id, "journal_id": issue.journal_id},
        )
        return await self.publish(publication, user_id)

    async def _set_status(
        self,
        publication: Publication,
        status: SubmissionStatus,
        user_id: Optional[uuid.UUID],
    ) -> None:
        previous = enum_value(publication.status)
        publication.status = status
        if previous != status.value:
            await self.event_store.log(
                event_type=EventType.PUBLICATION_STATUS_CHANGED,
                entity_type="publication",
                entity_id=publication.id,
                user_id=user_id,
                payload={
                    "submission_id": publication.submission_id,
                    "issue_id": publication.issue_id,
                    "from_status": previous,
                    "to_status": status.value,
                },
            )
        await self.session.flush()

    async def _update_submission(self, publication: Publication, user_id: Optional[uuid.UUID]) -> None:
        submission = await self.submissions.get(publication.submission_id)
        if submission is None:
            raise NotFoundError("Submission", publication.submission_id)
        await self.submissions.update_status(submission, user_id)
