"""
Usage statistics tables.

Raw usage events are loaded per log file into the temporary tables (keyed by
load_id), then compiled by queued jobs into the daily metrics tables.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, String, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, generate_uuid


class _TemporaryUsageMixin:
    """Columns shared by the temporary usage-event tables."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    load_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    journal_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False)
    submission_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False)
    institution_id: Mapped[int] = mapped_column(nullable=False)
    # Identifies one user session for unique counts
    session_key: Mapped[str] = mapped_column(String(255), nullable=False)


class TemporaryItemInvestigation(_TemporaryUsageMixin, Base):
    """Abstract/landing page views loaded from a usage log."""

    __tablename__ = "usage_stats_temporary_item_investigations"


class TemporaryItemRequest(_TemporaryUsageMixin, Base):
    """Galley (full text file) downloads loaded from a usage log."""

    __tablename__ = "usage_stats_temporary_item_requests"


class MetricsCounterSubmissionInstitutionDaily(Base):
    """COUNTER R5 per-submission, per-institution daily totals."""

    __tablename__ = "metrics_counter_submission_institution_daily"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    load_id: Mapped[str] = mapped_column(String(255), nullable=False)
    journal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("journals.id", ondelete="CASCADE"),
        nullable=False,
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False)
    institution_id: Mapped[int] = mapped_column(nullable=False)
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    metric_investigations: Mapped[int] = mapped_column(default=0, nullable=False)
    metric_investigations_unique: Mapped[int] = mapped_column(default=0, nullable=False)
    metric_requests: Mapped[int] = mapped_column(default=0, nullable=False)
    metric_requests_unique: Mapped[int] = mapped_column(default=0, nullable=False)

    __table_args__ = (
        Index("ix_metrics_csi_daily_load", "load_id"),
        Index("ix_metrics_csi_daily_lookup", "submission_id", "institution_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<MetricsCounterSubmissionInstitutionDaily {self.submission_id} {self.day}>"
