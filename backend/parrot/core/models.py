"""
Parrot Platform - Database Models
=================================

SQLAlchemy models for users and spaces (client workspaces).
"""

import enum
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from parrot.core.database import Base


# ==========================================================================
# Enums
# ==========================================================================

class UserRole(str, enum.Enum):
    """User roles for access control."""
    SYSTEM_ADMIN = "system_admin"  # Superset of admin
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    INTERNAL = "internal"


def new_space_id() -> str:
    return f"space-{uuid4().hex[:12]}"


# ==========================================================================
# Mixins
# ==========================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ==========================================================================
# Models
# ==========================================================================

class Space(Base, TimestampMixin):
    """
    Client workspace (formerly "company").

    Scopes projects, tasks, documents and settings.
    """

    __tablename__ = "spaces"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=new_space_id,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    members: Mapped[list["User"]] = relationship(
        back_populates="space",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Space {self.id} {self.name!r}>"


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False,
    )
    # Home space; admins usually have none
    company_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        ForeignKey("spaces.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    space: Mapped[Optional[Space]] = relationship(
        back_populates="members",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"
