"""Issue store, query builder, access policy and forms."""

from src.kernel.issues.collector import IssueCollector
from src.kernel.issues.issue_service import IssueService

__all__ = ["IssueCollector", "IssueService"]
