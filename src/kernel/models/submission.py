"""
Submission and Publication models.

A Submission is a manuscript under editorial processing; each Publication is
one version of it. Publication.status is the unit scheduled into an issue and
Submission.status is derived from its publications (see SubmissionService).
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class SubmissionStatus(str, Enum):
    """Lifecycle status shared by submissions and publications."""
    QUEUED = "queued"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    DECLINED = "declined"


class Submission(Base, TimestampMixin):
    """Manuscript under editorial processing."""

    __tablename__ = "submissions"

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
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        String(50),
        default=SubmissionStatus.QUEUED,
        nullable=False,
    )
    current_publication_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
    )

    publications: Mapped[List["Publication"]] = relationship(
        "Publication",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Publication.version",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_submissions_journal_status", "journal_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Submission {self.title[:50]} {self.status}>"


class Publication(Base, TimestampMixin):
    """One version of a submission's content and metadata."""

    __tablename__ = "publications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(default=1, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[SubmissionStatus] = mapped_column(
        String(50),
        default=SubmissionStatus.QUEUED,
        nullable=False,
    )
    issue_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("issues.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    date_published: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    # Position in the issue table of contents
    seq: Mapped[int] = mapped_column(default=0, nullable=False)
    doi: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    submission: Mapped["Submission"] = relationship(
        "Submission",
        back_populates="publications",
    )

    def __repr__(self) -> str:
        return f"<Publication v{self.version} {self.status} issue={self.issue_id}>"
