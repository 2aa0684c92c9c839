"""
Transaction model — records every movement of money in the ledger.

Key fields:
  - type: cash_deposit, check_deposit, wire_incoming or fund_transfer
  - amount_cents: Always positive; the direction is implied by the type
  - from_account_id: The account that originated the operation (required).
    For deposits this is the credited account itself.
  - to_account_id: The credited account; NULL when a fund transfer leaves
    the bank for an account number we don't hold
  - to_account_number: Always recorded, even when to_account_id is NULL
  - status: pending, completed or failed
  - reference_number: Unique human-readable reference shown to users

Completed means the balance effect has already been applied in the same
commit. A check deposit starts as pending with no balance effect; clearing
flips it to completed and applies the credit atomically, rejecting it
flips it to failed.

Rows are immutable after creation except for status, status_reason and
settled_at.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from netbank.database import Base


class TransactionType(str, enum.Enum):
    CASH_DEPOSIT = "cash_deposit"
    CHECK_DEPOSIT = "check_deposit"
    WIRE_INCOMING = "wire_incoming"
    FUND_TRANSFER = "fund_transfer"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Types that move money out of from_account_id
OUTGOING_TYPES = frozenset({TransactionType.FUND_TRANSFER})

# Types that credit to_account_id
INCOMING_TYPES = frozenset({
    TransactionType.CASH_DEPOSIT,
    TransactionType.CHECK_DEPOSIT,
    TransactionType.WIRE_INCOMING,
})


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    reference_number: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
    )

    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType),
        nullable=False,
    )

    amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    from_account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    to_account_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
        index=True,
    )

    to_account_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus),
        nullable=False,
        default=TransactionStatus.PENDING,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Why a pending transaction was failed (e.g. "Check returned unpaid")
    status_reason: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # When the balance effect was applied (NULL while pending or failed)
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Indexed for efficient date-range queries (statements, reports)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
