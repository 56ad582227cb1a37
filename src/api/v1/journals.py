"""
Journal (context) endpoints.
"""

import uuid
from typing import List

from fastapi import APIRouter

from src.api.deps import CurrentUser, DbSession, JournalManager
from src.kernel.journals.journal_service import JournalService
from src.kernel.security.csrf import CSRF_HEADER, generate_csrf_token
from src.schemas.common import OperationResult
from src.schemas.journal import CsrfTokenResponse, JournalResponse, JournalSettingsUpdate

router = APIRouter()


@router.get("", response_model=List[JournalResponse])
async def list_journals(user: CurrentUser, db: DbSession):
    """Journals the caller holds a role in (all journals for site admins)."""
    journals = await JournalService(db).list_for_user(user)
    return [JournalResponse.model_validate(journal) for journal in journals]


@router.get("/{journal_id}", response_model=JournalResponse)
async def get_journal(journal_id: uuid.UUID, user: JournalManager, db: DbSession):
    return JournalResponse.model_validate(await JournalService(db).get(journal_id))


@router.patch("/{journal_id}", response_model=OperationResult)
async def update_journal_settings(
    journal_id: uuid.UUID,
    request: JournalSettingsUpdate,
    user: JournalManager,
    db: DbSession,
):
    """Edit the publishing mode and delayed open access settings."""
    service = JournalService(db)
    journal = await service.get(journal_id)
    changed = await service.edit_settings(journal, request.to_patch(), user_id=user.id)
    return OperationResult(
        content=JournalResponse.model_validate(journal).model_dump(mode="json"),
        event="dataChanged" if changed else None,
    )


@router.get("/{journal_id}/csrf-token", response_model=CsrfTokenResponse)
async def get_csrf_token(journal_id: uuid.UUID, user: JournalManager):
    """Anti-forgery token to send with state-changing issue requests."""
    return CsrfTokenResponse(token=generate_csrf_token(user.id, journal_id), header=CSRF_HEADER)
