"""
Delayed open access: when a subscription journal publishes an issue, the
issue opens to everyone a configured number of months later.
"""

import calendar
from datetime import datetime
from typing import Optional

from src.kernel.models.issue import Issue, IssueAccessStatus
from src.kernel.models.journal import Journal, PublishingMode


def compute_open_access_date(now: datetime, delay_months: int) -> datetime:
    """
    Midnight on the same day of the month, ``delay_months`` months after ``now``.

    The delay is split into whole years and remaining months; the month sum
    rolls over into the year by integer division / modulo 12. A day missing
    from the target month (e.g. the 31st) clamps to that month's last day.
    """
    if delay_months < 0:
        raise ValueError("delay_months must not be negative")

    delay_years, remaining_months = divmod(delay_months, 12)
    # zero-based month arithmetic keeps December at 11 instead of 0
    month_index = (now.month - 1) + remaining_months
    year = now.year + delay_years + month_index // 12
    month = month_index % 12 + 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day, hour=0, minute=0, second=0, microsecond=0)


def open_access_release(journal: Journal, now: datetime) -> Optional[datetime]:
    """Open access date for an issue published now, or None when no delay applies."""
    delay = journal.delayed_open_access_duration or 0
    if journal.publishing_mode != PublishingMode.SUBSCRIPTION or delay <= 0:
        return None
    return compute_open_access_date(now, delay)


def apply_access_policy(issue: Issue, journal: Journal, now: datetime) -> bool:
    """
    Put the issue behind the subscription wall until its delayed open access date.

    Leaves access settings untouched when the journal has no delay policy.
    Returns True when the issue was changed.
    """
    release = open_access_release(journal, now)
    if release is None:
        return False
    issue.access_status = IssueAccessStatus.SUBSCRIPTION
    issue.open_access_date = release
    return True
