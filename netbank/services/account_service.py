"""
Account service — the ledger store's account side.

This module handles:
  - Account creation (paired savings + checking at registration, single
    accounts by admin action) with unique account number generation
  - Account retrieval by id (scoped to an owner) and by account number
  - Activation / deactivation (accounts are never deleted)
  - Balance verification (cached vs. computed from transactions)

Ownership enforcement:
  get_account() takes the caller's account_holder_id. An account owned by
  somebody else is reported exactly like a missing one, so members cannot
  probe which account ids exist.

No caching: every read goes to the database. A stale balance here is a
double-spend.

Admin access:
  Functions prefixed with `admin_` do NOT scope by account holder.
"""

import logging
import random
import string
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.exceptions import AccountNotFoundError, ValidationError
from netbank.models.account import Account, AccountType, ACCOUNT_NUMBER_PREFIXES
from netbank.models.account_holder import AccountHolder
from netbank.models.transaction import (
    Transaction,
    TransactionStatus,
    TransactionType,
    INCOMING_TYPES,
)

logger = logging.getLogger(__name__)


def _generate_account_number(account_type: AccountType) -> str:
    """Type prefix + today's date + 4 random digits, e.g. "CHK202610194821"."""
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    suffix = "".join(random.choices(string.digits, k=4))
    return f"{ACCOUNT_NUMBER_PREFIXES[account_type]}{today}{suffix}"


async def create_account(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    account_type: AccountType = AccountType.CHECKING,
) -> Account:
    """
    Create a new bank account with a zero balance and no T-PIN.

    Raises:
        RuntimeError: If no unique account number could be generated.
    """
    taken: set[str] = set()
    for _ in range(10):
        account_number = _generate_account_number(account_type)
        if account_number in taken:
            continue
        existing = await db.execute(
            select(Account.id).where(Account.account_number == account_number)
        )
        if existing.scalar_one_or_none() is None:
            break
        taken.add(account_number)
    else:
        raise RuntimeError("Failed to generate a unique account number")

    account = Account(
        account_holder_id=account_holder_id,
        account_type=account_type,
        account_number=account_number,
        balance_cents=0,
    )
    db.add(account)
    await db.flush()
    return account


async def create_default_accounts(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
) -> list[Account]:
    """Open the savings + checking pair every new member starts with."""
    savings = await create_account(db, account_holder_id, AccountType.SAVINGS)
    checking = await create_account(db, account_holder_id, AccountType.CHECKING)
    return [savings, checking]


async def list_accounts_for_owner(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    active_only: bool = False,
) -> list[Account]:
    """List the accounts belonging to one account holder."""
    query = (
        select(Account)
        .where(Account.account_holder_id == account_holder_id)
        .order_by(Account.created_at)
    )
    if active_only:
        query = query.where(Account.is_active.is_(True))
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    account_holder_id: uuid.UUID,
) -> Account:
    """
    Get a single account, verifying ownership.

    Raises:
        AccountNotFoundError: If the account doesn't exist or belongs to
                              someone else.
    """
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .where(Account.account_holder_id == account_holder_id)
    )
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_id)

    return account


async def get_account_by_number(
    db: AsyncSession,
    account_number: str,
) -> Account:
    """
    Resolve an account by its human-readable number.

    Raises:
        AccountNotFoundError: If no account carries that number.
    """
    result = await db.execute(
        select(Account).where(Account.account_number == account_number)
    )
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_number)

    return account


async def get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
    account_holder_id: uuid.UUID,
) -> dict:
    """
    Get the account balance — both cached and computed from transactions.

    A mismatch between the two signals a ledger integrity problem.
    """
    account = await get_account(db, account_id, account_holder_id)
    return await _balance_report(db, account)


async def compute_balance_from_transactions(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> int:
    """
    Recompute a balance from completed transactions.

    Incoming kinds (deposits, wires) and transfers credited to this account
    add; transfers out of it subtract. Pending and failed rows never count.
    """
    credit_result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0))
        .where(Transaction.to_account_id == account_id)
        .where(Transaction.status == TransactionStatus.COMPLETED)
        .where(Transaction.type.in_(INCOMING_TYPES | {TransactionType.FUND_TRANSFER}))
    )
    total_credits = credit_result.scalar()

    debit_result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount_cents), 0))
        .where(Transaction.from_account_id == account_id)
        .where(Transaction.status == TransactionStatus.COMPLETED)
        .where(Transaction.type == TransactionType.FUND_TRANSFER)
    )
    total_debits = debit_result.scalar()

    return total_credits - total_debits


async def _balance_report(db: AsyncSession, account: Account) -> dict:
    computed_balance_cents = await compute_balance_from_transactions(db, account.id)
    return {
        "account_id": account.id,
        "account_number": account.account_number,
        "balance_cents": account.balance_cents,
        "computed_balance_cents": computed_balance_cents,
        "match": account.balance_cents == computed_balance_cents,
        "currency": account.currency,
    }


# ---------------------------------------------------------------------------
# Admin functions
# ---------------------------------------------------------------------------

async def admin_get_all_accounts(db: AsyncSession) -> list[Account]:
    """[ADMIN ONLY] List all accounts across all account holders."""
    result = await db.execute(select(Account).order_by(Account.created_at))
    return list(result.scalars().all())


async def admin_get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> Account:
    """
    [ADMIN ONLY] Get any account by ID without ownership check.

    Raises:
        AccountNotFoundError: If the account doesn't exist.
    """
    result = await db.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_id)

    return account


async def admin_get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> dict:
    """[ADMIN ONLY] Get any account's balance without ownership check."""
    account = await admin_get_account(db, account_id)
    return await _balance_report(db, account)


async def admin_open_account(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_type: AccountType,
) -> Account:
    """
    [ADMIN ONLY] Open an additional account for a member.

    Raises:
        ValidationError: If the user has no account holder profile (admins).
    """
    result = await db.execute(
        select(AccountHolder).where(AccountHolder.user_id == user_id)
    )
    account_holder = result.scalar_one_or_none()
    if account_holder is None:
        raise ValidationError("This user has no banking profile")

    account = await create_account(db, account_holder.id, account_type)
    logger.info("Admin opened %s account %s", account_type.value, account.account_number)
    return account


async def admin_set_account_active(
    db: AsyncSession,
    account_id: uuid.UUID,
    is_active: bool,
) -> Account:
    """[ADMIN ONLY] Deactivate or reactivate an account. Never deletes."""
    account = await admin_get_account(db, account_id)
    account.is_active = is_active
    await db.flush()
    logger.info(
        "Account %s %s",
        account.account_number,
        "reactivated" if is_active else "deactivated",
    )
    return account
