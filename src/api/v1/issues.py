"""
Issue management API: listing, issue data, access settings, identifiers,
cover images, table of contents and the publish / unpublish / current /
delete lifecycle.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.responses import JSONResponse

from src.api.deps import CsrfProtectedManager, DbSession, FileManager, Hooks, JournalManager
from src.config import get_settings
from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import FormValidationError
from src.kernel.identifiers.doi_service import DoiService
from src.kernel.issues.collector import IssueCollector
from src.kernel.issues.cover_images import cover_image_filename
from src.kernel.issues.forms import validate_access_settings, validate_issue_data
from src.kernel.issues.issue_service import IssueService
from src.kernel.models.base import enum_value
from src.kernel.models.event_log import EventType
from src.kernel.models.issue import Issue
from src.kernel.notifications.notification_service import NotificationService
from src.kernel.patch import UNSET, Patch
from src.kernel.submissions.publication_service import PublicationService
from src.orchestration.issue_lifecycle import EVENT_DATA_CHANGED, IssueLifecycleManager, LifecycleResult
from src.schemas.common import ErrorResponse, OperationResult
from src.schemas.issue import (
    AccessSettingsResponse,
    AccessSettingsUpdate,
    IdentifierResponse,
    IdentifierUpdate,
    IssueDataUpdate,
    IssueListResponse,
    IssueResponse,
    LifecycleResponse,
    PublishRequest,
    TocEntry,
)

router = APIRouter()


def _issue_response(issue: Issue, current_issue_id: Optional[uuid.UUID], publication_count: int = 0) -> IssueResponse:
    response = IssueResponse.model_validate(issue)
    response.access_status = enum_value(issue.access_status)
    response.is_current = issue.id == current_issue_id
    response.publication_count = publication_count
    return response


def _lifecycle_response(result: LifecycleResult) -> LifecycleResponse:
    return LifecycleResponse.model_validate(result.as_payload())


async def _current_issue_id(service: IssueService, journal_id: uuid.UUID) -> Optional[uuid.UUID]:
    current = await service.get_current(journal_id)
    return current.id if current is not None else None


@router.get("", response_model=IssueListResponse)
async def list_issues(
    journal_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
    published: Optional[bool] = Query(None, description="true: back issues, false: future issues"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """List the journal's issues with their publication counts."""
    service = IssueService(db)
    collector = IssueCollector().filter_by_journal_ids([journal_id])
    if published is not None:
        collector.filter_by_published(published)
    if published is False:
        collector.order_by(IssueCollector.ORDERBY_UNPUBLISHED_ISSUES)
    else:
        collector.order_by(IssueCollector.ORDERBY_PUBLISHED_ISSUES)

    total = await service.count(collector)
    issues = await service.get_many(collector.paginate(limit, offset))
    counts = await service.count_publications(issue.id for issue in issues)
    current_id = await _current_issue_id(service, journal_id)

    return IssueListResponse(
        items=[_issue_response(issue, current_id, counts.get(issue.id, 0)) for issue in issues],
        total=total,
    )


@router.post("", response_model=OperationResult, status_code=status.HTTP_201_CREATED)
async def add_issue(
    journal_id: uuid.UUID,
    request: IssueDataUpdate,
    user: JournalManager,
    db: DbSession,
):
    """Create an unpublished issue."""
    patch = request.to_patch()
    validate_issue_data(patch)

    issue = await IssueService(db).add(journal_id, patch)
    await EventStore(db).log(
        event_type=EventType.ISSUE_CREATED,
        entity_type="issue",
        entity_id=issue.id,
        user_id=user.id,
        payload={"journal_id": journal_id, "fields": sorted(patch)},
    )
    await NotificationService(db).create_trivial_notification(user.id, journal_id)

    return OperationResult(
        content=_issue_response(issue, None).model_dump(mode="json"),
        event=EVENT_DATA_CHANGED,
    )


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
):
    service = IssueService(db)
    issue = await service.get_for_journal(journal_id, issue_id)
    counts = await service.count_publications([issue.id])
    return _issue_response(issue, await _current_issue_id(service, journal_id), counts[issue.id])


@router.patch("/{issue_id}", response_model=OperationResult)
async def update_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    request: IssueDataUpdate,
    user: JournalManager,
    db: DbSession,
):
    """
    Edit issue identification data.

    Registered identifiers are flagged for re-deposit.
    """
    service = IssueService(db)
    issue = await service.get_for_journal(journal_id, issue_id)
    patch = request.to_patch()
    validate_issue_data(patch, issue)

    changed = await service.edit(issue, patch)
    if changed:
        await EventStore(db).log(
            event_type=EventType.ISSUE_UPDATED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user.id,
            payload={"journal_id": journal_id, "previous": changed},
        )
        await DoiService(db).issue_updated(issue)
    await NotificationService(db).create_trivial_notification(user.id, journal_id)

    return OperationResult(content={"issue_id": str(issue.id)}, event=EVENT_DATA_CHANGED)


@router.delete("/{issue_id}", response_model=LifecycleResponse)
async def delete_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: CsrfProtectedManager,
    db: DbSession,
    hooks: Hooks,
    files: FileManager,
):
    """Delete an issue; its publications go back to the editing queue."""
    result = await IssueLifecycleManager(db, hooks=hooks).delete(journal_id, issue_id, user.id)
    # Files go only once the deletion is durable
    await db.commit()
    for filename in result.released_files:
        files.remove_journal_file(journal_id, filename)
    return _lifecycle_response(result)


@router.get("/{issue_id}/access", response_model=AccessSettingsResponse)
async def get_access(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
):
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    return AccessSettingsResponse(
        access_status=enum_value(issue.access_status),
        open_access_date=issue.open_access_date,
    )


@router.put("/{issue_id}/access", response_model=OperationResult)
async def update_access(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    request: AccessSettingsUpdate,
    user: JournalManager,
    db: DbSession,
):
    """Update access status and open access date (null clears the date)."""
    service = IssueService(db)
    issue = await service.get_for_journal(journal_id, issue_id)
    patch = request.to_patch()
    validate_access_settings(patch, issue)

    changed = await service.edit(issue, patch)
    if changed:
        await EventStore(db).log(
            event_type=EventType.ISSUE_ACCESS_UPDATED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user.id,
            payload={
                "journal_id": journal_id,
                "access_status": enum_value(issue.access_status),
                "open_access_date": issue.open_access_date,
            },
        )
    await NotificationService(db).create_trivial_notification(user.id, journal_id)

    return OperationResult(content={"issue_id": str(issue.id)}, event=EVENT_DATA_CHANGED)


@router.get("/{issue_id}/identifiers", response_model=IdentifierResponse)
async def get_identifiers(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
):
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    doi = await DoiService(db).get_for_issue(issue)
    return IdentifierResponse(
        issue_id=issue.id,
        doi=doi.doi if doi else None,
        status=enum_value(doi.status) if doi else None,
    )


@router.put("/{issue_id}/identifiers", response_model=OperationResult)
async def update_identifiers(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    request: IdentifierUpdate,
    user: JournalManager,
    db: DbSession,
):
    """Assign a DOI to the issue, generating one when none is given."""
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    doi = await DoiService(db).create_doi(issue, doi=request.doi, user_id=user.id)
    return OperationResult(
        content={"issue_id": str(issue.id), "doi": doi.doi},
        event=EVENT_DATA_CHANGED,
    )


@router.delete("/{issue_id}/identifiers", response_model=OperationResult)
async def clear_identifier(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: CsrfProtectedManager,
    db: DbSession,
):
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    cleared = await DoiService(db).clear_issue_doi(issue, user_id=user.id)
    return OperationResult(content={"issue_id": str(issue.id), "cleared": cleared}, event=EVENT_DATA_CHANGED)


@router.delete("/{issue_id}/identifiers/publications", response_model=OperationResult)
async def clear_publication_identifiers(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: CsrfProtectedManager,
    db: DbSession,
):
    """Remove the DOIs of every publication in the issue."""
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    cleared = await DoiService(db).clear_publication_dois(issue, user_id=user.id)
    return OperationResult(content={"publication_ids": [str(pid) for pid in cleared]})


@router.put(
    "/{issue_id}/cover-image",
    response_model=OperationResult,
    responses={422: {"model": ErrorResponse}},
)
async def upload_cover_image(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
    files: FileManager,
    file: UploadFile = File(...),
    alt_text: Optional[str] = Form(None, max_length=500),
):
    """
    Attach an uploaded image as the issue's cover.

    A previous cover stored under another name is removed once the new one is
    committed. Omitting ``alt_text`` keeps the stored alt text.
    """
    service = IssueService(db)
    issue = await service.get_for_journal(journal_id, issue_id)
    try:
        filename = cover_image_filename(issue.id, file.filename)
    except ValueError as exc:
        raise FormValidationError({"cover_image": str(exc)})

    data = await file.read()
    if not data:
        raise FormValidationError({"cover_image": "The uploaded file is empty"})
    if len(data) > get_settings().max_cover_image_bytes:
        raise FormValidationError({"cover_image": "The uploaded file is too large"})

    previous = issue.cover_image
    files.save_journal_file(journal_id, filename, data)
    changed = await service.edit(
        issue,
        Patch(cover_image=filename, cover_image_alt_text=alt_text if alt_text is not None else UNSET),
    )
    await EventStore(db).log(
        event_type=EventType.ISSUE_UPDATED,
        entity_type="issue",
        entity_id=issue.id,
        user_id=user.id,
        payload={"journal_id": journal_id, "file_name": filename, "previous": changed},
    )

    await db.commit()
    if previous and previous != filename:
        files.remove_journal_file(journal_id, previous)
    return OperationResult(
        content={"issue_id": str(issue.id), "cover_image": filename},
        event=EVENT_DATA_CHANGED,
    )


@router.delete(
    "/{issue_id}/cover-image/{filename}",
    response_model=OperationResult,
    responses={404: {"model": ErrorResponse}},
)
async def delete_cover_image(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    filename: str,
    user: JournalManager,
    db: DbSession,
    files: FileManager,
):
    """
    Remove the issue's cover image.

    The issue is cleared even when the file is already gone from disk; the
    missing file is reported as a failure.
    """
    service = IssueService(db)
    issue = await service.get_for_journal(journal_id, issue_id)
    if not issue.cover_image or filename != issue.cover_image:
        raise FormValidationError({"cover_image": "File name does not match the issue's cover image"})

    try:
        files.journal_file_path(journal_id, filename)
    except ValueError as exc:
        raise FormValidationError({"cover_image": str(exc)})

    await service.edit(issue, Patch(cover_image=None, cover_image_alt_text=None))
    await EventStore(db).log(
        event_type=EventType.ISSUE_COVER_IMAGE_DELETED,
        entity_type="issue",
        entity_id=issue.id,
        user_id=user.id,
        payload={"journal_id": journal_id, "file_name": filename},
    )

    await db.commit()
    removed = files.remove_journal_file(journal_id, filename)
    if not removed:
        # Returned, not raised: the cleared issue fields are still committed
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=ErrorResponse(content="Cover image file not found").model_dump(exclude_none=True),
        )
    return OperationResult(event="fileDeleted")


@router.get("/{issue_id}/toc", response_model=List[TocEntry])
async def issue_toc(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: JournalManager,
    db: DbSession,
):
    """Publications in the issue in table of contents order."""
    issue = await IssueService(db).get_for_journal(journal_id, issue_id)
    publications = await PublicationService(db).get_by_issue(issue.id)
    return [
        TocEntry(
            id=publication.id,
            submission_id=publication.submission_id,
            title=publication.title,
            status=enum_value(publication.status),
            seq=publication.seq,
            doi=publication.doi,
            date_published=publication.date_published,
        )
        for publication in publications
    ]


@router.post("/{issue_id}/publish", response_model=LifecycleResponse)
async def publish_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    request: PublishRequest,
    user: JournalManager,
    db: DbSession,
    hooks: Hooks,
):
    """
    Publish an issue.

    Asking to assign identifiers without ``confirmed`` returns a
    confirmation-required result and changes nothing.
    """
    manager = IssueLifecycleManager(db, hooks=hooks)
    result = await manager.publish(
        journal_id,
        issue_id,
        user.id,
        confirmed=request.confirmed,
        assign_identifiers=request.assign_identifiers,
        send_notification=request.send_notification,
    )
    return _lifecycle_response(result)


@router.post("/{issue_id}/unpublish", response_model=LifecycleResponse)
async def unpublish_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: CsrfProtectedManager,
    db: DbSession,
    hooks: Hooks,
):
    manager = IssueLifecycleManager(db, hooks=hooks)
    return _lifecycle_response(await manager.unpublish(journal_id, issue_id, user.id))


@router.post("/{issue_id}/current", response_model=LifecycleResponse)
async def set_current_issue(
    journal_id: uuid.UUID,
    issue_id: uuid.UUID,
    user: CsrfProtectedManager,
    db: DbSession,
    hooks: Hooks,
):
    """Make the issue the journal's current issue."""
    manager = IssueLifecycleManager(db, hooks=hooks)
    return _lifecycle_response(await manager.set_current(journal_id, issue_id, user.id))
