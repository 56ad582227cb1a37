"""
Issue model - a numbered/dated collection of publications in a journal.

Issue.published is the lifecycle flag driven by IssueLifecycleManager:
    unpublished --publish--> published --unpublish--> unpublished
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class IssueAccessStatus(str, Enum):
    """Who may read the issue's content."""
    OPEN = "open"
    SUBSCRIPTION = "subscription"


class Issue(Base, TimestampMixin):
    """Journal issue."""

    __tablename__ = "issues"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    journal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("journals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Identification
    volume: Mapped[Optional[int]] = mapped_column(nullable=True)
    number: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    year: Mapped[Optional[int]] = mapped_column(nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    show_volume: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_number: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_year: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_title: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Publication state
    published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    date_published: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Access policy
    access_status: Mapped[IssueAccessStatus] = mapped_column(
        String(50),
        default=IssueAccessStatus.OPEN,
        nullable=False,
    )
    open_access_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Cover image (file lives in the journal's public files directory)
    cover_image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cover_image_alt_text: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        Index("ix_issues_journal_published", "journal_id", "published", "date_published"),
    )

    @property
    def identification(self) -> str:
        """Human readable label, e.g. 'Vol. 3 No. 2 (2024): Special Issue'."""
        parts = []
        if self.show_volume and self.volume is not None:
            parts.append(f"Vol. {self.volume}")
        if self.show_number and self.number:
            parts.append(f"No. {self.number}")
        label = " ".join(parts)
        if self.show_year and self.year is not None:
            label = f"{label} ({self.year})" if label else str(self.year)
        if self.show_title and self.title:
            label = f"{label}: {self.title}" if label else self.title
        return label or (self.title or "")

    def __repr__(self) -> str:
        return f"<Issue {self.identification or self.id} published={self.published}>"
