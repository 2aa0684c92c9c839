"""
Statement service — monthly and annual account statements.

Generates a statement for a specific account and period by:
  1. Computing the opening balance (completed effects settled before the period)
  2. Listing the transactions created in the period, oldest first
  3. Aggregating credits and debits settled in the period
  4. closing = opening + credits - debits

Balance effects are dated by settled_at, not created_at: a check deposited
on the 30th and cleared on the 2nd counts towards the next month's
balances, although it is listed in the month it was submitted.

Read-only: nothing here writes to the database.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.exceptions import ValidationError
from netbank.models.account import Account
from netbank.models.transaction import (
    Transaction,
    TransactionStatus,
    TransactionType,
    INCOMING_TYPES,
)
from netbank.services.account_service import get_account

CREDIT_TYPES = INCOMING_TYPES | {TransactionType.FUND_TRANSFER}


def period_bounds(year: int, month: int | None) -> tuple[datetime, datetime]:
    """[start, end) of a calendar month, or of the whole year when month is None."""
    if month is None:
        return (
            datetime(year, 1, 1, tzinfo=timezone.utc),
            datetime(year + 1, 1, 1, tzinfo=timezone.utc),
        )
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


def _credit_clause(account_id: uuid.UUID):
    return and_(
        Transaction.to_account_id == account_id,
        Transaction.status == TransactionStatus.COMPLETED,
        Transaction.type.in_(CREDIT_TYPES),
    )


def _debit_clause(account_id: uuid.UUID):
    return and_(
        Transaction.from_account_id == account_id,
        Transaction.status == TransactionStatus.COMPLETED,
        Transaction.type == TransactionType.FUND_TRANSFER,
    )


async def _sum(db: AsyncSession, *conditions) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0)).where(*conditions)
    )
    return result.scalar()


async def build_statement(
    db: AsyncSession,
    account: Account,
    year: int,
    month: int | None = None,
) -> dict:
    """Statement data for an already-authorized account."""
    start, end = period_bounds(year, month)

    opening_balance = await _sum(
        db, _credit_clause(account.id), Transaction.settled_at < start
    ) - await _sum(
        db, _debit_clause(account.id), Transaction.settled_at < start
    )

    in_period = and_(Transaction.settled_at >= start, Transaction.settled_at < end)
    total_credits = await _sum(db, _credit_clause(account.id), in_period)
    total_debits = await _sum(db, _debit_clause(account.id), in_period)

    result = await db.execute(
        select(Transaction)
        .where(
            and_(
                or_(
                    Transaction.from_account_id == account.id,
                    Transaction.to_account_id == account.id,
                ),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
        )
        .order_by(Transaction.created_at.asc())
    )
    transactions = list(result.scalars().all())

    return {
        "account_id": account.id,
        "account_number": account.account_number,
        "year": year,
        "month": month,
        "period_start": start,
        "period_end": end,
        "opening_balance_cents": opening_balance,
        "closing_balance_cents": opening_balance + total_credits - total_debits,
        "total_credits_cents": total_credits,
        "total_debits_cents": total_debits,
        "transaction_count": len(transactions),
        "transactions": transactions,
    }


async def generate_statement(
    db: AsyncSession,
    account_id: uuid.UUID,
    account_holder_id: uuid.UUID,
    year: int,
    month: int | None = None,
) -> dict:
    """
    Generate a statement for one of the caller's accounts.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't the caller's.
        ValidationError: If the month is out of range.
    """
    account = await get_account(db, account_id, account_holder_id)
    return await build_statement(db, account, year, month)
