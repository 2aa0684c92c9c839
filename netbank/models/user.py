"""
User model — the authentication identity.

Each User represents a login credential (username + hashed password) with
exactly one role, or none at all. The User is separate from AccountHolder:

  - User handles authentication (who are you?) and authorization (what role?)
  - AccountHolder handles banking identity (what accounts do you own?)

Roles:
  - USER:  Bank customer — the default role for signup
  - ADMIN: Back-office administrator
  A NULL role is a valid stored state (e.g. an identity whose role was
  revoked); the session-role guard rejects every session for it.

Session version:
  Every issued token embeds the identity's session_version. Incrementing
  the column discards all outstanding sessions at once (logout, forced
  logout by the guard, credential change).

Login throttle state lives here too: failed-attempt counter, time of the
last failure, locked flag and lock expiry. See services/login_throttle.py.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from netbank.database import Base


class Role(str, enum.Enum):
    """
    The single role an identity holds.

    Inherits from str so the enum value serializes naturally to JSON
    and into JWT claims.
    """
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login name: unique and indexed for fast lookups
    username: Mapped[str] = mapped_column(
        String(256),
        unique=True,
        nullable=False,
        index=True,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )

    # Salted slow hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[Role | None] = mapped_column(
        Enum(Role),
        default=Role.USER,
        nullable=True,
    )

    # Soft-disable: deactivated users can't log in but their data is preserved
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    session_version: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # --- Login throttle ---
    failed_login_attempts: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    last_failed_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_locked: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    locked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # True only for the bootstrapped admin until its credentials are changed
    uses_default_credentials: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # One-to-one with AccountHolder; admins usually have none
    account_holder: Mapped["AccountHolder"] = relationship(
        back_populates="user",
        uselist=False,
    )
