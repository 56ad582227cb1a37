"""
User accounts and their role assignments within journals.
"""

import uuid
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class UserRole(str, Enum):
    """Site-wide role."""
    USER = "user"
    ADMIN = "admin"


class JournalRoleType(str, Enum):
    """Role a user holds inside one journal."""
    MANAGER = "manager"
    EDITOR = "editor"
    AUTHOR = "author"
    READER = "reader"


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        String(50),
        default=UserRole.USER,
        nullable=False,
    )
    # Disabled accounts cannot authenticate and receive no notifications
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class JournalRole(Base, TimestampMixin):
    """Assignment of a user to a role in a journal."""

    __tablename__ = "journal_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    journal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("journals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[JournalRoleType] = mapped_column(
        String(50),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "journal_id", "role", name="uq_journal_roles_user_journal_role"),
    )

    def __repr__(self) -> str:
        return f"<JournalRole {self.role} user={self.user_id} journal={self.journal_id}>"
