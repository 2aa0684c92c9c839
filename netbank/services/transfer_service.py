"""
Transfer engine — the only code that moves money.

Every money movement (fund transfer, cash deposit, check deposit, incoming
wire) goes through execute_transfer(). Check deposits are two-phase: they
are recorded as pending with no credit, and an administrator later clears
or fails them with clear_check_deposit() / fail_check_deposit().

Preconditions (checked in this order, first failure wins, never retried):
  1. Source account exists, belongs to the caller and is active
  2. Amount is within the bounds configured for its kind
  3. Fund transfers: destination resolves and is active, and differs from
     the source. PIN-authorized kinds: a T-PIN is set and verifies
  4. Fund transfers: balance covers the amount

A precondition failure raises before anything is written, so there is
nothing to roll back.

Atomicity:
  Each attempt reads the accounts, validates, mutates the balances and
  inserts the transaction row, then commits. All of it succeeds or the
  attempt is rolled back as a whole.

Concurrency:
  Account rows are read with SELECT ... FOR UPDATE in ascending id order
  (a no-op on SQLite, row locks on PostgreSQL) and carry a version column.
  Two units that both read version N cannot both commit: the second UPDATE
  matches zero rows and raises StaleDataError. That, a locked database or
  a reference-number collision rolls the attempt back, waits
  and retries from a fresh read, up to LEDGER_MAX_RETRIES times before
  surfacing ConflictError. The retry re-checks every precondition, so a
  transfer that lost a race for the last funds fails with
  InsufficientFundsError rather than overdrawing.

Notification:
  The owner is notified only after commit, through notify()'s own session.
"""

import asyncio
import logging
import random
import secrets
import string
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from netbank.config import settings
from netbank.exceptions import (
    AccountNotFoundError,
    ConflictError,
    InsufficientFundsError,
    SystemFaultError,
    TransactionNotFoundError,
    ValidationError,
)
from netbank.models.account import Account
from netbank.models.account_holder import AccountHolder
from netbank.models.transaction import Transaction, TransactionStatus, TransactionType
from netbank.security import verify_secret
from netbank.services import notification_service

logger = logging.getLogger(__name__)


REFERENCE_PREFIXES = {
    TransactionType.FUND_TRANSFER: "TXN",
    TransactionType.CASH_DEPOSIT: "DEP",
    TransactionType.CHECK_DEPOSIT: "DEP",
    TransactionType.WIRE_INCOMING: "WIR",
}

# Kinds that require the source account's T-PIN
PIN_AUTHORIZED_TYPES = frozenset({
    TransactionType.FUND_TRANSFER,
    TransactionType.WIRE_INCOMING,
})

_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits

# PostgreSQL serialization failure / deadlock detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def amount_bounds(kind: TransactionType) -> tuple[int, int]:
    """(min_cents, max_cents) for a transaction kind."""
    return {
        TransactionType.FUND_TRANSFER: (
            settings.FUND_TRANSFER_MIN_CENTS, settings.FUND_TRANSFER_MAX_CENTS
        ),
        TransactionType.CASH_DEPOSIT: (
            settings.CASH_DEPOSIT_MIN_CENTS, settings.CASH_DEPOSIT_MAX_CENTS
        ),
        TransactionType.CHECK_DEPOSIT: (
            settings.CHECK_DEPOSIT_MIN_CENTS, settings.CHECK_DEPOSIT_MAX_CENTS
        ),
        TransactionType.WIRE_INCOMING: (
            settings.WIRE_INCOMING_MIN_CENTS, settings.WIRE_INCOMING_MAX_CENTS
        ),
    }[kind]


def generate_reference_number(kind: TransactionType) -> str:
    """Kind prefix + UTC timestamp + 6 random characters, e.g. "TXN20261019143005K3Q9ZD"."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(6))
    return f"{REFERENCE_PREFIXES[kind]}{stamp}{suffix}"


def _is_reference_collision(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: transactions.reference_number"
    # PostgreSQL: 'duplicate key value violates unique constraint "..._reference_number_key"'
    message = str(exc.orig).lower()
    return "unique" in message and "reference_number" in message


def is_retryable(exc: SQLAlchemyError) -> bool:
    """
    True for failures caused by a concurrent unit rather than by this one.

    Integrity errors only count when a freshly generated reference number
    collided; CHECK and foreign-key violations are faults, not races.
    """
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, IntegrityError):
        return _is_reference_collision(exc)
    if isinstance(exc, OperationalError):
        if "locked" in str(exc.orig).lower():
            return True
        sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        return sqlstate in _RETRYABLE_SQLSTATES
    return False


async def _backoff(attempt: int) -> None:
    base = settings.LEDGER_RETRY_BACKOFF_SECONDS
    await asyncio.sleep(base * attempt + random.uniform(0, base))


async def _run_unit(db: AsyncSession, unit, description: str):
    """
    Run `unit(db)` and commit, retrying on concurrency conflicts.

    `unit` must be safe to call again from scratch: a rolled-back attempt
    leaves nothing behind in the session.
    """
    for attempt in range(1, settings.LEDGER_MAX_RETRIES + 1):
        try:
            result = await unit(db)
            await db.commit()
            return result
        except SQLAlchemyError as exc:
            await db.rollback()
            if not is_retryable(exc):
                logger.exception("Storage fault during %s", description)
                raise SystemFaultError() from exc
            logger.info(
                "Conflict during %s (attempt %d/%d): %s",
                description,
                attempt,
                settings.LEDGER_MAX_RETRIES,
                type(exc).__name__,
            )
            if attempt < settings.LEDGER_MAX_RETRIES:
                await _backoff(attempt)

    logger.warning("Giving up on %s after %d attempts", description, settings.LEDGER_MAX_RETRIES)
    raise ConflictError()


async def _lock_accounts(db: AsyncSession, *account_ids: uuid.UUID) -> dict[uuid.UUID, Account]:
    """Fresh, locked reads of the given accounts, in ascending id order."""
    accounts = {}
    for account_id in sorted(set(account_ids)):
        result = await db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        account = result.scalar_one_or_none()
        if account is not None:
            accounts[account_id] = account
    return accounts


async def _owner_user_id(db: AsyncSession, account_holder_id: uuid.UUID) -> uuid.UUID | None:
    result = await db.execute(
        select(AccountHolder.user_id).where(AccountHolder.id == account_holder_id)
    )
    return result.scalar_one_or_none()


def _format_cents(amount_cents: int) -> str:
    return f"${amount_cents // 100:,}.{amount_cents % 100:02d}"


async def execute_transfer(
    db: AsyncSession,
    kind: TransactionType,
    account_holder_id: uuid.UUID,
    source_account_id: uuid.UUID,
    amount_cents: int,
    destination_number: str | None = None,
    pin: str | None = None,
    description: str | None = None,
) -> Transaction:
    """
    Validate and execute one money movement as a single atomic unit.

    For deposit kinds the source account is also the credited account and
    `destination_number` is ignored.

    Returns:
        The committed Transaction (completed, or pending for check deposits).

    Raises:
        AccountNotFoundError: Source not found / not the caller's, or the
                              destination number doesn't resolve.
        ValidationError: Inactive account, amount out of bounds, self
                         transfer, T-PIN missing or wrong.
        InsufficientFundsError: Fund transfer exceeding the balance.
        ConflictError: Concurrent updates kept winning; safe to retry.
        SystemFaultError: The store failed.
    """
    outgoing = kind == TransactionType.FUND_TRANSFER
    notices: list[tuple[uuid.UUID, str, str]] = []

    async def unit(session: AsyncSession) -> Transaction:
        notices.clear()

        # Resolve the destination before locking so both rows are locked in id order
        destination_id = None
        if outgoing and destination_number:
            result = await session.execute(
                select(Account.id).where(Account.account_number == destination_number)
            )
            destination_id = result.scalar_one_or_none()
        locked = await _lock_accounts(
            session, source_account_id, *([destination_id] if destination_id else [])
        )

        # 1. Source
        source = locked.get(source_account_id)
        if source is None or source.account_holder_id != account_holder_id:
            raise AccountNotFoundError(source_account_id)
        if not source.is_active:
            raise ValidationError("This account is inactive")

        # 2. Amount
        min_cents, max_cents = amount_bounds(kind)
        if amount_cents <= 0 or not min_cents <= amount_cents <= max_cents:
            raise ValidationError(
                f"Amount must be between {_format_cents(min_cents)} "
                f"and {_format_cents(max_cents)}"
            )

        # 3. Destination and T-PIN
        destination = source
        destination_ref = source.account_number
        if outgoing:
            if not destination_number:
                raise ValidationError("A destination account number is required")
            destination_ref = destination_number
            if destination_number == source.account_number:
                raise ValidationError("Cannot transfer to the same account")

            if destination_id is None:
                if not settings.ALLOW_EXTERNAL_TRANSFERS:
                    raise AccountNotFoundError(destination_number)
                destination = None
            else:
                destination = locked.get(destination_id)
                if destination is None:
                    raise AccountNotFoundError(destination_number)
                if not destination.is_active:
                    raise ValidationError("The destination account is inactive")

        if kind in PIN_AUTHORIZED_TYPES:
            if not source.has_transaction_pin:
                raise ValidationError(
                    "Please set up your transaction PIN before making transfers"
                )
            if not pin or not verify_secret(pin, source.transaction_pin_hash):
                raise ValidationError("Invalid transaction PIN")

        # 4. Funds
        if outgoing and source.balance_cents < amount_cents:
            raise InsufficientFundsError(
                account_id=source.id,
                requested_cents=amount_cents,
                available_cents=source.balance_cents,
            )

        # Execute
        now = datetime.now(timezone.utc)
        status = (
            TransactionStatus.PENDING
            if kind == TransactionType.CHECK_DEPOSIT
            else TransactionStatus.COMPLETED
        )

        if outgoing:
            source.balance_cents -= amount_cents
            if destination is not None:
                destination.balance_cents += amount_cents
        elif status == TransactionStatus.COMPLETED:
            source.balance_cents += amount_cents

        txn = Transaction(
            reference_number=generate_reference_number(kind),
            type=kind,
            amount_cents=amount_cents,
            from_account_id=source.id,
            to_account_id=destination.id if destination is not None else None,
            to_account_number=destination_ref,
            status=status,
            description=description,
            settled_at=now if status == TransactionStatus.COMPLETED else None,
        )
        session.add(txn)
        await session.flush()

        amount = _format_cents(amount_cents)
        owner = await _owner_user_id(session, source.account_holder_id)
        if owner is not None:
            if outgoing:
                message = f"{amount} sent to {destination_ref}. Reference: {txn.reference_number}"
            elif status == TransactionStatus.PENDING:
                message = f"Check deposit of {amount} is pending clearance. Reference: {txn.reference_number}"
            else:
                message = f"{amount} credited to {source.account_number}. Reference: {txn.reference_number}"
            notices.append((owner, "Transaction processed", message))

        if outgoing and destination is not None:
            recipient = await _owner_user_id(session, destination.account_holder_id)
            if recipient is not None and recipient != owner:
                notices.append((
                    recipient,
                    "Funds received",
                    f"{amount} received from {source.account_number}. "
                    f"Reference: {txn.reference_number}",
                ))
        return txn

    txn = await _run_unit(db, unit, f"{kind.value} from {source_account_id}")

    logger.info(
        "Committed %s %s for %d cents (%s)",
        txn.type.value,
        txn.reference_number,
        txn.amount_cents,
        txn.status.value,
    )

    for user_id, title, message in notices:
        await notification_service.notify(
            db.bind,
            user_id,
            title,
            message,
            category="transaction",
            related_entity_id=txn.id,
            related_entity_type="transaction",
        )
    return txn


async def fund_transfer(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    source_account_id: uuid.UUID,
    destination_number: str,
    amount_cents: int,
    pin: str,
    description: str | None = None,
) -> Transaction:
    return await execute_transfer(
        db,
        TransactionType.FUND_TRANSFER,
        account_holder_id,
        source_account_id,
        amount_cents,
        destination_number=destination_number,
        pin=pin,
        description=description,
    )


async def cash_deposit(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    account_id: uuid.UUID,
    amount_cents: int,
    description: str | None = None,
) -> Transaction:
    return await execute_transfer(
        db,
        TransactionType.CASH_DEPOSIT,
        account_holder_id,
        account_id,
        amount_cents,
        description=description,
    )


async def check_deposit(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    account_id: uuid.UUID,
    amount_cents: int,
    check_number: str,
    description: str | None = None,
) -> Transaction:
    """Record a check for clearance. Nothing is credited until it clears."""
    memo = f"Check #{check_number}"
    if description:
        memo = f"{memo}: {description}"
    return await execute_transfer(
        db,
        TransactionType.CHECK_DEPOSIT,
        account_holder_id,
        account_id,
        amount_cents,
        description=memo,
    )


async def wire_incoming(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    account_id: uuid.UUID,
    amount_cents: int,
    pin: str,
    sender_name: str,
    sender_bank: str | None = None,
    description: str | None = None,
) -> Transaction:
    memo = f"Wire from {sender_name}"
    if sender_bank:
        memo = f"{memo} ({sender_bank})"
    if description:
        memo = f"{memo}: {description}"
    return await execute_transfer(
        db,
        TransactionType.WIRE_INCOMING,
        account_holder_id,
        account_id,
        amount_cents,
        pin=pin,
        description=memo,
    )


# ---------------------------------------------------------------------------
# Check clearing (admin)
# ---------------------------------------------------------------------------

async def _settle_check_deposit(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    cleared: bool,
    reason: str | None,
) -> Transaction:
    holder: list[uuid.UUID] = []

    async def unit(session: AsyncSession) -> Transaction:
        holder.clear()
        result = await session.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        txn = result.scalar_one_or_none()
        if txn is None:
            raise TransactionNotFoundError(transaction_id)
        if txn.type != TransactionType.CHECK_DEPOSIT or txn.status != TransactionStatus.PENDING:
            raise ValidationError("Only pending check deposits can be cleared or failed")

        account = (await _lock_accounts(session, txn.to_account_id))[txn.to_account_id]
        now = datetime.now(timezone.utc)
        if cleared:
            # Failing a check stays possible; it never touches the balance
            if not account.is_active:
                raise ValidationError("This account is inactive")
            account.balance_cents += txn.amount_cents
            txn.status = TransactionStatus.COMPLETED
            txn.settled_at = now
        else:
            txn.status = TransactionStatus.FAILED
            txn.status_reason = reason or "Check returned unpaid"
            # Touch the account so its version guards against a racing clear
            account.updated_at = now

        owner = await _owner_user_id(session, account.account_holder_id)
        if owner is not None:
            holder.append(owner)
        await session.flush()
        return txn

    action = "clear" if cleared else "fail"
    txn = await _run_unit(db, unit, f"{action} check deposit {transaction_id}")
    logger.info("Check deposit %s %s", txn.reference_number, txn.status.value)

    amount = _format_cents(txn.amount_cents)
    if cleared:
        title = "Check deposit cleared"
        message = f"Your check deposit of {amount} has cleared. Reference: {txn.reference_number}"
    else:
        title = "Check deposit failed"
        message = (
            f"Your check deposit of {amount} was not credited: {txn.status_reason}. "
            f"Reference: {txn.reference_number}"
        )
    for user_id in holder:
        await notification_service.notify(
            db.bind,
            user_id,
            title,
            message,
            category="transaction",
            related_entity_id=txn.id,
            related_entity_type="transaction",
        )
    return txn


async def clear_check_deposit(db: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
    """[ADMIN ONLY] pending -> completed, crediting the account in the same unit."""
    return await _settle_check_deposit(db, transaction_id, cleared=True, reason=None)


async def fail_check_deposit(
    db: AsyncSession,
    transaction_id: uuid.UUID,
    reason: str | None = None,
) -> Transaction:
    """[ADMIN ONLY] pending -> failed. The balance is untouched."""
    return await _settle_check_deposit(db, transaction_id, cleared=False, reason=reason)
