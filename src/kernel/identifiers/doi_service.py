"""
Identifier assigner: DOIs for issues and their publications.

Generated DOIs follow ``<registrant prefix>/<journal path>.i<short issue id>``
unless an explicit DOI string is given.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import get_settings
from src.kernel.events.event_store import EventStore
from src.kernel.exceptions import FormValidationError, NotFoundError
from src.kernel.models.base import enum_value
from src.kernel.models.doi import Doi, DoiStatus
from src.kernel.models.event_log import EventType
from src.kernel.models.issue import Issue
from src.kernel.models.journal import Journal
from src.kernel.models.submission import Publication
from src.logging_config import get_logger

logger = get_logger(__name__)


class DoiService:
    """Assigns, updates and clears persistent identifiers."""

    def __init__(self, session: AsyncSession, registrant: Optional[str] = None):
        self.session = session
        self.registrant = registrant or get_settings().doi_prefix
        self.event_store = EventStore(session)

    async def get_for_issue(self, issue: Issue) -> Optional[Doi]:
        result = await self.session.execute(select(Doi).where(Doi.issue_id == issue.id))
        return result.scalar_one_or_none()

    async def create_doi(
        self,
        issue: Issue,
        doi: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> Doi:
        """
        Assign a DOI to the issue and persist it.

        An issue that already has a DOI keeps it unless a different string is given.

        Raises:
            FormValidationError: the DOI string is malformed or taken by another issue
        """
        existing = await self.get_for_issue(issue)
        if doi is None:
            if existing is not None:
                return existing
            doi = await self._generate(issue)
        doi = doi.strip()
        if not doi.startswith("10.") or "/" not in doi:
            raise FormValidationError({"doi": f"'{doi}' is not a valid DOI"})

        taken = await self.session.execute(select(Doi).where(Doi.doi == doi))
        owner = taken.scalar_one_or_none()
        if owner is not None and owner.issue_id != issue.id:
            raise FormValidationError({"doi": f"DOI {doi} is already assigned"})

        if existing is None:
            existing = Doi(journal_id=issue.journal_id, issue_id=issue.id, doi=doi)
            self.session.add(existing)
        else:
            existing.doi = doi
            existing.status = DoiStatus.UNREGISTERED

        await self.event_store.log(
            event_type=EventType.DOI_ASSIGNED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user_id,
            payload={"doi": doi, "journal_id": issue.journal_id},
        )
        await self.session.flush()
        logger.info("DOI assigned", extra={"issue_id": str(issue.id), "doi": doi})
        return existing

    async def issue_updated(self, issue: Issue) -> None:
        """
        Issue metadata changed: a registered DOI must be re-deposited.
        """
        doi = await self.get_for_issue(issue)
        if doi is None:
            return
        if enum_value(doi.status) == DoiStatus.REGISTERED.value:
            doi.status = DoiStatus.STALE
            await self.session.flush()
            logger.info("DOI marked stale", extra={"issue_id": str(issue.id), "doi": doi.doi})

    async def clear_issue_doi(self, issue: Issue, user_id: Optional[uuid.UUID] = None) -> bool:
        """Remove the issue's DOI. Returns False when it had none."""
        doi = await self.get_for_issue(issue)
        if doi is None:
            return False
        await self.session.delete(doi)
        await self.event_store.log(
            event_type=EventType.DOI_CLEARED,
            entity_type="issue",
            entity_id=issue.id,
            user_id=user_id,
            payload={"doi": doi.doi},
        )
        await self.session.flush()
        return True

    async def clear_publication_dois(self, issue: Issue, user_id: Optional[uuid.UUID] = None) -> List[uuid.UUID]:
        """Remove the DOIs of every publication in the issue. Returns the cleared publication ids."""
        result = await self.session.execute(
            select(Publication).where(
                Publication.issue_id == issue.id,
                Publication.doi.is_not(None),
            )
        )
        cleared = []
        for publication in result.scalars().all():
            await self.event_store.log(
                event_type=EventType.DOI_CLEARED,
                entity_type="publication",
                entity_id=publication.id,
                user_id=user_id,
                payload={"doi": publication.doi, "issue_id": issue.id},
            )
            publication.doi = None
            cleared.append(publication.id)
        await self.session.flush()
        return cleared

    async def _generate(self, issue: Issue) -> str:
        journal = await self.session.get(Journal, issue.journal_id)
        if journal is None:
            raise NotFoundError("Journal", issue.journal_id)
        return f"{self.registrant}/{journal.path}.i{issue.id.hex[:8]}"
