"""Journal (context) store."""

from src.kernel.journals.journal_service import JournalService

__all__ = ["JournalService"]
