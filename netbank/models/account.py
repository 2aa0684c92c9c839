"""
Account model — a bank account owned by an AccountHolder.

Each account has:
  - A unique, human-readable account number ("SAV20260119" + 4 digits)
  - A type: savings or checking
  - A balance in integer cents, mutated only by the transfer engine
  - An optional transaction PIN (T-PIN) hash, unset until the owner
    configures one; outgoing money movement is refused until then
  - A version counter for optimistic concurrency

Balance management:
  `balance_cents` is updated in the same database transaction as the
  transaction row that explains it. A CHECK constraint forbids negative
  balances as the last line of defense.

Optimistic concurrency:
  `version` is SQLAlchemy's version_id_col. Every UPDATE of an account row
  is emitted as "... WHERE id = :id AND version = :seen_version"; if a
  concurrent unit committed first, zero rows match and the flush raises
  StaleDataError. The transfer engine rolls back and retries from a
  fresh read, so a balance check can never be based on a stale value.

Accounts are never hard-deleted; `is_active` is cleared instead.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from netbank.database import Base


class AccountType(str, enum.Enum):
    SAVINGS = "savings"
    CHECKING = "checking"


# Account number prefix per type
ACCOUNT_NUMBER_PREFIXES = {
    AccountType.SAVINGS: "SAV",
    AccountType.CHECKING: "CHK",
}


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_accounts_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Owner of this account
    account_holder_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("account_holders.id"),
        nullable=False,
        index=True,
    )

    account_type: Mapped[AccountType] = mapped_column(
        Enum(AccountType),
        nullable=False,
        default=AccountType.CHECKING,
    )

    account_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
    )

    balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # ISO 4217 currency code
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    transaction_pin_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

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

    __mapper_args__ = {"version_id_col": version}

    # --- Relationships ---
    account_holder: Mapped["AccountHolder"] = relationship(
        back_populates="accounts",
    )

    @property
    def has_transaction_pin(self) -> bool:
        return bool(self.transaction_pin_hash)
