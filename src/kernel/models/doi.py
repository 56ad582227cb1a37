"""
Persistent identifier (DOI) assigned to an issue.
"""

import uuid
from enum import Enum

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class DoiStatus(str, Enum):
    """Registration state with the registration agency."""
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    STALE = "stale"  # registered, but metadata changed since


class Doi(Base, TimestampMixin):
    """A DOI and its registration state."""

    __tablename__ = "dois"

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
    issue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("issues.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    doi: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    status: Mapped[DoiStatus] = mapped_column(
        String(50),
        default=DoiStatus.UNREGISTERED,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Doi {self.doi} {self.status}>"
