"""
Transaction service — read access to the ledger's transaction history.

Writes never happen here: every transaction row is created by the
transfer engine (transfer_service) in the same unit as its balance effect.

A transaction "belongs to" an account when the account is either its
source (from_account_id) or its destination (to_account_id).

Admin read-only functions:
  Functions prefixed with `admin_` provide read access to all transactions
  without ownership scoping. These are called from admin-only endpoints.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.exceptions import TransactionNotFoundError
from netbank.models.transaction import Transaction, TransactionStatus, TransactionType
from netbank.services.account_service import get_account, admin_get_account


def _touching(account_id: uuid.UUID):
    return (Transaction.from_account_id == account_id) | (
        Transaction.to_account_id == account_id
    )


def _filtered(
    query,
    status_filter: TransactionStatus | None,
    type_filter: TransactionType | None,
):
    if status_filter:
        query = query.where(Transaction.status == status_filter)
    if type_filter:
        query = query.where(Transaction.type == type_filter)
    return query


async def get_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
    account_holder_id: uuid.UUID,
    status_filter: TransactionStatus | None = None,
    type_filter: TransactionType | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """
    List transactions for one of the caller's accounts, newest first.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't the caller's.
    """
    await get_account(db, account_id, account_holder_id)

    query = (
        select(Transaction)
        .where(_touching(account_id))
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(_filtered(query, status_filter, type_filter))
    return list(result.scalars().all())


async def get_transaction(
    db: AsyncSession,
    account_id: uuid.UUID,
    transaction_id: uuid.UUID,
    account_holder_id: uuid.UUID,
) -> Transaction:
    """
    Get a single transaction on one of the caller's accounts.

    Raises:
        AccountNotFoundError: If the account doesn't exist or isn't the caller's.
        TransactionNotFoundError: If the transaction doesn't touch this account.
    """
    await get_account(db, account_id, account_holder_id)

    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id)
        .where(_touching(account_id))
    )
    txn = result.scalar_one_or_none()

    if txn is None:
        raise TransactionNotFoundError(transaction_id)

    return txn


# ---------------------------------------------------------------------------
# Admin read-only functions
# ---------------------------------------------------------------------------

async def admin_get_all_transactions(
    db: AsyncSession,
    status_filter: TransactionStatus | None = None,
    type_filter: TransactionType | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """[ADMIN ONLY] List ALL transactions, e.g. pending checks awaiting clearance."""
    query = (
        select(Transaction)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(_filtered(query, status_filter, type_filter))
    return list(result.scalars().all())


async def admin_get_account_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    """[ADMIN ONLY] List all transactions for any account without ownership check."""
    await admin_get_account(db, account_id)

    result = await db.execute(
        select(Transaction)
        .where(_touching(account_id))
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def admin_get_transaction(
    db: AsyncSession,
    transaction_id: uuid.UUID,
) -> Transaction:
    """[ADMIN ONLY] Get any single transaction by ID without ownership check."""
    result = await db.execute(
        select(Transaction).where(Transaction.id == transaction_id)
    )
    txn = result.scalar_one_or_none()

    if txn is None:
        raise TransactionNotFoundError(transaction_id)

    return txn
