"""
Issue lifecycle: publish, unpublish, set current and delete.

Each operation runs inside the caller's request session and keeps the issue,
its publications, their submissions, the journal's current-issue pointer and
the issue DOI consistent with one another:

- publish: optional DOI assignment, published flag and date, delayed open
  access policy, current-issue pointer, and (first publish only) the cascade
  that moves scheduled publications to published. Readers can be notified.
- unpublish: clears the published flag and date, re-derives the current issue
  and moves published publications back to scheduled.
- delete: detaches publications back to the editing queue before removing
  the issue, then re-derives the current issue if it was the deleted one.
  The cover image file is not touched here: its name is returned in
  LifecycleResult.released_files for the caller to remove after commit.

Every submission touched by a cascade is processed in its own savepoint. A
failing submission is rolled back alone and reported as a failed
CascadeOutcome; the others keep their changes.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.kernel.events.event_store import EventStore
from src.kernel.events.event_types import (
    CurrentIssueChangedEvent,
    IssueDeletedEvent,
    IssuePublishedEvent,
    IssueUnpublishedEvent,
)
from src.kernel.exceptions import JournalServiceError
from src.kernel.identifiers.doi_service import DoiService
from src.kernel.issues.access_policy import apply_access_policy
from src.kernel.issues.issue_service import IssueService
from src.kernel.journals.journal_service import JournalService
from src.kernel.models.base import enum_value
from src.kernel.models.event_log import EventType
from src.kernel.models.issue import Issue
from src.kernel.models.journal import Journal, PublishingMode
from src.kernel.models.notification import NotificationType
from src.kernel.models.submission import Publication, Submission, SubmissionStatus
from src.kernel.notifications.notification_service import ASSOC_TYPE_ISSUE, NotificationService
from src.kernel.patch import Patch
from src.kernel.submissions.collector import SubmissionCollector
from src.kernel.submissions.publication_service import PublicationService
from src.kernel.submissions.submission_service import SubmissionService
from src.logging_config import get_logger
from src.orchestration.hooks import (
    LifecycleEvent,
    LifecycleHooks,
    LifecyclePoint,
    default_hooks,
    run_deferred,
)

logger = get_logger(__name__)

EVENT_DATA_CHANGED = "dataChanged"
GLOBAL_EVENT_ISSUE_PUBLISHED = "issuePublished"
GLOBAL_EVENT_ISSUE_UNPUBLISHED = "issueUnpublished"


@dataclass
class CascadeOutcome:
    """What happened to one submission during a publish/unpublish cascade."""

    submission_id: uuid.UUID
    succeeded: bool
    publication_ids: List[uuid.UUID] = field(default_factory=list)
    submission_status: Optional[str] = None
    reason: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "submission_id": str(self.submission_id),
            "succeeded": self.succeeded,
            "publication_ids": [str(pid) for pid in self.publication_ids],
            "submission_status": self.submission_status,
            "reason": self.reason,
        }


@dataclass
class LifecycleResult:
    """Outcome of a lifecycle operation in the shape the API returns."""

    status: bool
    content: Any = None
    event: Optional[str] = None
    global_event: Optional[Dict[str, Any]] = None
    outcomes: List[CascadeOutcome] = field(default_factory=list)
    confirmation_required: bool = False
    # Public files the committed operation no longer references
    released_files: List[str] = field(default_factory=list)

    @property
    def failed_outcomes(self) -> List[CascadeOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def as_payload(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "content": self.content,
            "event": self.event,
            "global_event": self.global_event,
            "confirmation_required": self.confirmation_required,
            "outcomes": [outcome.as_dict() for outcome in self.outcomes],
        }


class IssueLifecycleManager:
    """Orchestrates issue publish / unpublish / set-current / delete."""

    def __init__(
        self,
        session: AsyncSession,
        hooks: Optional[LifecycleHooks] = None,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.session = session
        self.hooks = hooks if hooks is not None else default_hooks
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.event_store = EventStore(session)
        self.issues = IssueService(session)
        self.journals = JournalService(session)
        self.submissions = SubmissionService(session)
        self.publications = PublicationService(session)
        self.dois = DoiService(session)
        self.notifications = NotificationService(session)

    async def publish(
        self,
        journal_id: uuid.UUID,
        issue_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        *,
        confirmed: bool = False,
        assign_identifiers: bool = False,
        send_notification: bool = False,
    ) -> LifecycleResult:
        """
        Publish an issue.

        Publishing an already published issue keeps its flag and date and
        only re-applies the access policy and the current-issue pointer.

        Raises:
            NotFoundError: no such issue
            AuthorizationError: the issue belongs to another journal
            LifecycleVetoedError: a PRE_PUBLISH callback refused
        """
        issue = await self.issues.get_for_journal(journal_id, issue_id)
        journal = await self.journals.get(journal_id)
        first_publish = not issue.published

        if first_publish and assign_identifiers and not confirmed:
            return LifecycleResult(
                status=True,
                content={
                    "issue_id": str(issue.id),
                    "message": "Publishing will assign identifiers to this issue. Confirm to continue.",
                },
                confirmation_required=True,
            )

        pre_event = await self.hooks.call(
            LifecycleEvent(
                point=LifecyclePoint.PRE_PUBLISH,
                issue=issue,
                journal=journal,
                user_id=user_id,
                data={"first_publish": first_publish, "assign_identifiers": assign_identifiers},
            )
        )

        now = self._now()
        doi_assigned = False
        if first_publish:
            if assign_identifiers:
                await self.dois.create_doi(issue, user_id=user_id)
                doi_assigned = True
            await self.issues.edit(issue, Patch(published=True, date_published=now))

        apply_access_policy(issue, journal, now)
        await self.session.flush()
        await self._set_current(journal, issue, user_id)

        outcomes: List[CascadeOutcome] = []
        if first_publish:
            await self.dois.issue_updated(issue)
            outcomes = await self._publish_cascade(issue, user_id)

        post_event = await self.hooks.call(
            LifecycleEvent(
                point=LifecyclePoint.POST_PUBLISH,
                issue=issue,
                journal=journal,
                user_id=user_id,
                data={"first_publish": first_publish, "outcomes": outcomes},
            )
        )

        # Sent even when some cascade items failed
        notified = 0
        if send_notification and enum_value(journal.publishing_mode) != PublishingMode.NONE.value:
            users = await self.journals.get_enabled_users(journal_id)
            sent = await self.notifications.notify_users(
                [user.id for user in users],
                NotificationType.PUBLISHED_ISSUE,
                journal_id,
                assoc_type=ASSOC_TYPE_ISSUE,
                assoc_id=issue.id,
            )
            notified = len(sent)

        await run_deferred([pre_event, post_event])

        published_ids = [pid for outcome in outcomes if outcome.succeeded for pid in outcome.publication_ids]
        failures = sum(1 for outcome in outcomes if not outcome.succeeded)
        await self.event_store.log_from_model(
            event_type=EventType.ISSUE_PUBLISHED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user_id,
            payload_model=IssuePublishedEvent(
                journal_id=journal_id,
                first_publish=first_publish,
                date_published=issue.date_published,
                access_status=enum_value(issue.access_status),
                open_access_date=issue.open_access_date,
                doi_assigned=doi_assigned,
                publications_published=len(published_ids),
                cascade_failures=failures,
                notifications_sent=notified,
            ),
        )
        await self.session.flush()

        logger.info(
            "Issue published",
            extra={
                "issue_id": str(issue.id),
                "journal_id": str(journal_id),
                "first_publish": first_publish,
                "publications_published": len(published_ids),
                "cascade_failures": failures,
                "notifications_sent": notified,
            },
        )
        return LifecycleResult(
            status=True,
            content={"issue_id": str(issue.id), "notifications_sent": notified},
            event=EVENT_DATA_CHANGED,
            global_event={"name": GLOBAL_EVENT_ISSUE_PUBLISHED, "data": {"id": str(issue.id)}},
            outcomes=outcomes,
        )

    async def unpublish(
        self,
        journal_id: uuid.UUID,
        issue_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> LifecycleResult:
        """
        Return an issue to unpublished.

        Published publications in the issue end up Scheduled: they are
        unpublished and immediately re-published against an issue that is no
        longer published.

        Raises:
            NotFoundError: no such issue
            AuthorizationError: the issue belongs to another journal
            LifecycleVetoedError: a PRE_UNPUBLISH callback refused
        """
        issue = await self.issues.get_for_journal(journal_id, issue_id)
        journal = await self.journals.get(journal_id)

        pre_event = await self.hooks.call(
            LifecycleEvent(
                point=LifecyclePoint.PRE_UNPUBLISH,
                issue=issue,
                journal=journal,
                user_id=user_id,
            )
        )

        # Explicit None clears the stored date
        await self.issues.edit(issue, Patch(published=False, date_published=None))
        current = await self._set_current(journal, None, user_id)

        await self.dois.issue_updated(issue)
        outcomes = await self._unpublish_cascade(issue, user_id)

        post_event = await self.hooks.call(
            LifecycleEvent(
                point=LifecyclePoint.POST_UNPUBLISH,
                issue=issue,
                journal=journal,
                user_id=user_id,
                data={"outcomes": outcomes},
            )
        )
        await run_deferred([pre_event, post_event])

        rescheduled = sum(len(o.publication_ids) for o in outcomes if o.succeeded)
        failures = sum(1 for o in outcomes if not o.succeeded)
        await self.event_store.log_from_model(
            event_type=EventType.ISSUE_UNPUBLISHED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user_id,
            payload_model=IssueUnpublishedEvent(
                journal_id=journal_id,
                publications_rescheduled=rescheduled,
                cascade_failures=failures,
                current_issue_id=current.id if current is not None else None,
            ),
        )
        await self.session.flush()

        logger.info(
            "Issue unpublished",
            extra={
                "issue_id": str(issue.id),
                "journal_id": str(journal_id),
                "publications_rescheduled": rescheduled,
                "cascade_failures": failures,
            },
        )
        return LifecycleResult(
            status=True,
            content={"issue_id": str(issue.id)},
            event=EVENT_DATA_CHANGED,
            global_event={"name": GLOBAL_EVENT_ISSUE_UNPUBLISHED, "data": {"id": str(issue.id)}},
            outcomes=outcomes,
        )

    async def set_current(
        self,
        journal_id: uuid.UUID,
        issue_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> LifecycleResult:
        """
        Make the issue the journal's current issue, published or not.

        Raises:
            NotFoundError: no such issue
            AuthorizationError: the issue belongs to another journal
        """
        issue = await self.issues.get_for_journal(journal_id, issue_id)
        journal = await self.journals.get(journal_id)
        await self._set_current(journal, issue, user_id)
        await self.session.flush()
        return LifecycleResult(
            status=True,
            content={"issue_id": str(issue.id)},
            event=EVENT_DATA_CHANGED,
        )

    async def delete(
        self,
        journal_id: uuid.UUID,
        issue_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
    ) -> LifecycleResult:
        """
        Delete an issue after sending its publications back to the editing queue.

        Raises:
            NotFoundError: no such issue
            AuthorizationError: the issue belongs to another journal
        """
        issue = await self.issues.get_for_journal(journal_id, issue_id)
        journal = await self.journals.get(journal_id)
        current = await self.issues.get_current(journal_id)
        was_current = current is not None and current.id == issue.id

        detached: List[uuid.UUID] = []
        for submission in await self._submissions_in_issue(issue):
            for publication in list(submission.publications):
                if publication.issue_id != issue.id:
                    continue
                await self.publications.edit(
                    publication,
                    Patch(issue_id=None, status=SubmissionStatus.QUEUED),
                )
                detached.append(publication.id)
            await self.submissions.update_status(submission, user_id)

        cover_image = issue.cover_image
        await self.issues.delete(issue)

        replacement = None
        if was_current:
            replacement = await self._set_current(journal, None, user_id, previous_id=issue_id)

        await self.event_store.log_from_model(
            event_type=EventType.ISSUE_DELETED,
            entity_type="issue",
            entity_id=issue_id,
            user_id=user_id,
            payload_model=IssueDeletedEvent(
                journal_id=journal_id,
                detached_publication_ids=detached,
                was_current=was_current,
                current_issue_id=replacement.id if replacement is not None else None,
            ),
        )
        await self.session.flush()

        logger.info(
            "Issue deleted",
            extra={
                "issue_id": str(issue_id),
                "journal_id": str(journal_id),
                "publications_detached": len(detached),
                "was_current": was_current,
            },
        )
        return LifecycleResult(
            status=True,
            content={"issue_id": str(issue_id)},
            event=EVENT_DATA_CHANGED,
            released_files=[cover_image] if cover_image else [],
        )

    async def _set_current(
        self,
        journal: Journal,
        issue: Optional[Issue],
        user_id: Optional[uuid.UUID],
        previous_id: Optional[uuid.UUID] = None,
    ) -> Optional[Issue]:
        """Move the current-issue pointer (None re-derives it) and log the move."""
        if previous_id is None:
            previous = await self.issues.get_current(journal.id)
            previous_id = previous.id if previous is not None else None

        current = await self.issues.update_current(journal.id, issue)
        current_id = current.id if current is not None else None
        if current_id != previous_id:
            await self.event_store.log_from_model(
                event_type=EventType.CURRENT_ISSUE_CHANGED,
                entity_type="journal",
                entity_id=journal.id,
                user_id=user_id,
                payload_model=CurrentIssueChangedEvent(
                    previous_issue_id=previous_id,
                    current_issue_id=current_id,
                ),
            )
        return current

    async def _submissions_in_issue(
        self,
        issue: Issue,
        statuses: Optional[List[SubmissionStatus]] = None,
    ) -> List[Submission]:
        collector = (
            SubmissionCollector()
            .filter_by_journal_ids([issue.journal_id])
            .filter_by_issue_ids([issue.id])
        )
        if statuses is not None:
            collector.filter_by_status(statuses)
        return await self.submissions.get_many(collector)

    async def _publish_cascade(self, issue: Issue, user_id: Optional[uuid.UUID]) -> List[CascadeOutcome]:
        submissions = await self._submissions_in_issue(
            issue, [SubmissionStatus.SCHEDULED, SubmissionStatus.PUBLISHED]
        )

        async def publish_scheduled(publication: Publication) -> bool:
            if enum_value(publication.status) != SubmissionStatus.SCHEDULED.value:
                return False
            await self.publications.publish(publication, user_id)
            return True

        return [
            await self._cascade_submission(submission, issue, publish_scheduled, user_id)
            for submission in submissions
        ]

    async def _unpublish_cascade(self, issue: Issue, user_id: Optional[uuid.UUID]) -> List[CascadeOutcome]:
        submissions = await self._submissions_in_issue(issue)

        async def reschedule_published(publication: Publication) -> bool:
            if enum_value(publication.status) != SubmissionStatus.PUBLISHED.value:
                return False
            await self.publications.unpublish(publication, user_id)
            # The issue is no longer published, so this lands on Scheduled
            await self.publications.publish(publication, user_id)
            return True

        return [
            await self._cascade_submission(submission, issue, reschedule_published, user_id)
            for submission in submissions
        ]

    async def _cascade_submission(
        self,
        submission: Submission,
        issue: Issue,
        step: Callable[[Publication], Any],
        user_id: Optional[uuid.UUID],
    ) -> CascadeOutcome:
        submission_id = submission.id
        touched: List[uuid.UUID] = []
        try:
            async with self.session.begin_nested():
                for publication in list(submission.publications):
                    if publication.issue_id != issue.id:
                        continue
                    if await step(publication):
                        touched.append(publication.id)
                status = await self.submissions.update_status(submission, user_id)
        except (SQLAlchemyError, JournalServiceError) as exc:
            logger.warning(
                "Cascade failed for submission",
                extra={
                    "submission_id": str(submission_id),
                    "issue_id": str(issue.id),
                    "error": str(exc),
                },
                exc_info=True,
            )
            return CascadeOutcome(submission_id=submission_id, succeeded=False, reason=str(exc))

        return CascadeOutcome(
            submission_id=submission_id,
            succeeded=True,
            publication_ids=touched,
            submission_status=status.value,
        )
