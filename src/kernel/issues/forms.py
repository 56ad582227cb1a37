"""
Validation for the issue data and access settings forms.

Validation failures raise FormValidationError carrying per-field messages;
the caller returns them instead of applying the change.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from src.kernel.exceptions import FormValidationError
from src.kernel.models.issue import Issue, IssueAccessStatus
from src.kernel.patch import UNSET, Patch

MIN_YEAR = 1000
MAX_YEAR = 9999

# show flag -> field it displays
_SHOW_FLAGS = {
    "show_volume": "volume",
    "show_number": "number",
    "show_year": "year",
    "show_title": "title",
}


def _effective(patch: Patch, issue: Optional[Issue], field: str) -> Any:
    """Value the field will have once the patch is applied."""
    value = patch.get(field)
    if value is UNSET:
        return getattr(issue, field) if issue is not None else None
    return value


def validate_issue_data(patch: Patch, issue: Optional[Issue] = None) -> None:
    """
    Validate issue identification data for add (issue=None) or edit.

    Raises:
        FormValidationError: with one message per offending field
    """
    errors: Dict[str, str] = {}

    volume = _effective(patch, issue, "volume")
    number = _effective(patch, issue, "number")
    year = _effective(patch, issue, "year")
    title = _effective(patch, issue, "title")

    if volume is None and not number and year is None and not title:
        errors["identification"] = "An issue needs at least a volume, number, year or title"

    if volume is not None and volume < 0:
        errors["volume"] = "Volume must be a positive number"

    if year is not None and not (MIN_YEAR <= year <= MAX_YEAR):
        errors["year"] = f"Year must be between {MIN_YEAR} and {MAX_YEAR}"

    for flag, field in _SHOW_FLAGS.items():
        # Only check pairs the form touched
        if not (patch.is_set(flag) or patch.is_set(field)):
            continue
        shown = _effective(patch, issue, flag)
        value = _effective(patch, issue, field)
        if shown and (value is None or value == ""):
            errors.setdefault(field, f"Cannot show the {field} without a value")

    if errors:
        raise FormValidationError(errors)


def validate_access_settings(patch: Patch, issue: Issue) -> None:
    """
    Validate access status / open access date changes.

    Raises:
        FormValidationError: with one message per offending field
    """
    errors: Dict[str, str] = {}
    status = _effective(patch, issue, "access_status")
    open_access_date = _effective(patch, issue, "open_access_date")

    try:
        status = IssueAccessStatus(status)
    except ValueError:
        errors["access_status"] = f"Unknown access status '{status}'"
        raise FormValidationError(errors)

    if status == IssueAccessStatus.OPEN and patch.get("open_access_date") not in (UNSET, None):
        errors["open_access_date"] = "An open access issue cannot have a delayed open access date"

    if (
        status == IssueAccessStatus.SUBSCRIPTION
        and open_access_date is not None
        and issue.date_published is not None
        and _naive(open_access_date) < _naive(issue.date_published)
    ):
        errors["open_access_date"] = "Open access date cannot be before the publication date"

    if errors:
        raise FormValidationError(errors)


def _naive(value: datetime) -> datetime:
    # SQLite returns naive datetimes; compare everything without tzinfo
    return value.replace(tzinfo=None)
