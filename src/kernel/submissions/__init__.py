"""Submission and publication store."""

from src.kernel.submissions.collector import SubmissionCollector
from src.kernel.submissions.publication_service import PublicationService
from src.kernel.submissions.submission_service import SubmissionService, derive_submission_status

__all__ = [
    "PublicationService",
    "SubmissionCollector",
    "SubmissionService",
    "derive_submission_status",
]
