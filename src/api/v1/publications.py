"""
Publication endpoints.
"""

import uuid

from fastapi import APIRouter

from src.api.deps import DbSession, JournalManager
from src.kernel.exceptions import AuthorizationError, NotFoundError
from src.kernel.issues.issue_service import IssueService
from src.kernel.models.base import enum_value
from src.kernel.models.submission import Submission
from src.kernel.submissions.publication_service import PublicationService
from src.schemas.publication import PublicationResponse, ScheduleRequest

router = APIRouter()


@router.put("/{publication_id}/issue", response_model=PublicationResponse)
async def schedule_publication(
    journal_id: uuid.UUID,
    publication_id: uuid.UUID,
    request: ScheduleRequest,
    user: JournalManager,
    db: DbSession,
):
    """
    Assign a publication to an issue.

    The publication becomes Scheduled, or Published when the issue already is.
    """
    service = PublicationService(db)
    publication = await service.get(publication_id)
    if publication is None:
        raise NotFoundError("Publication", publication_id)
    submission = await db.get(Submission, publication.submission_id)
    if submission is None or submission.journal_id != journal_id:
        raise AuthorizationError("Publication does not belong to this journal")

    issue = await IssueService(db).get_for_journal(journal_id, request.issue_id)
    await service.schedule(publication, issue, user.id)

    refreshed = await service.submissions.get(publication.submission_id)
    return PublicationResponse(
        id=publication.id,
        submission_id=publication.submission_id,
        version=publication.version,
        title=publication.title,
        status=enum_value(publication.status),
        issue_id=publication.issue_id,
        seq=publication.seq,
        doi=publication.doi,
        date_published=publication.date_published,
        submission_status=enum_value(refreshed.status) if refreshed else None,
    )
