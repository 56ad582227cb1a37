"""
Journal model - the multi-tenant context every issue and submission belongs to.
"""

import uuid
from enum import Enum
from typing import Optional

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class PublishingMode(str, Enum):
    """How the journal makes its content available."""
    OPEN = "open"
    SUBSCRIPTION = "subscription"
    NONE = "none"  # content is published elsewhere


class Journal(Base, TimestampMixin):
    """A journal (context)."""

    __tablename__ = "journals"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    path: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    publishing_mode: Mapped[PublishingMode] = mapped_column(
        String(50),
        default=PublishingMode.OPEN,
        nullable=False,
    )
    # Months between publication and open access for subscription journals; 0 disables
    delayed_open_access_duration: Mapped[int] = mapped_column(
        default=0,
        nullable=False,
    )

    # Current issue pointer. Read and written only through IssueService.
    current_issue_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("issues.id", ondelete="SET NULL", use_alter=True, name="fk_journals_current_issue_id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Journal {self.path}>"
