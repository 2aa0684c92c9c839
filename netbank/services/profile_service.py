"""
Profile service — transaction PIN (T-PIN) management.

The T-PIN authorizes fund transfers and incoming wires. It is distinct
from the login password and is stored as a salted hash on each account.
Setting it applies the same PIN to all of the holder's active accounts.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from netbank.config import settings
from netbank.exceptions import ValidationError
from netbank.models.account import Account
from netbank.security import hash_secret, verify_secret
from netbank.services.account_service import list_accounts_for_owner

logger = logging.getLogger(__name__)


def _validate_new_pin(new_pin: str, confirm_pin: str) -> None:
    if new_pin != confirm_pin:
        raise ValidationError("Transaction PIN and confirmation do not match")
    if len(new_pin) < settings.TRANSACTION_PIN_MIN_LENGTH:
        raise ValidationError(
            f"Transaction PIN must be at least "
            f"{settings.TRANSACTION_PIN_MIN_LENGTH} characters"
        )


async def _apply_pin(
    db: AsyncSession,
    accounts: list[Account],
    new_pin: str,
) -> list[Account]:
    pin_hash = hash_secret(new_pin)
    for account in accounts:
        account.transaction_pin_hash = pin_hash
    await db.flush()
    return accounts


async def reset_transaction_pin(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    new_pin: str,
    confirm_pin: str,
) -> list[Account]:
    """
    Set the T-PIN on every active account without asking for the old one.

    Raises:
        ValidationError: If the confirmation differs, the PIN is too short,
                         or the holder has no active account.
    """
    _validate_new_pin(new_pin, confirm_pin)

    accounts = await list_accounts_for_owner(db, account_holder_id, active_only=True)
    if not accounts:
        raise ValidationError("No active accounts found")

    await _apply_pin(db, accounts, new_pin)
    logger.info("Transaction PIN reset for account holder %s", account_holder_id)
    return accounts


async def change_transaction_pin(
    db: AsyncSession,
    account_holder_id: uuid.UUID,
    current_pin: str,
    new_pin: str,
    confirm_pin: str,
) -> list[Account]:
    """
    Change an existing T-PIN after verifying the current one.

    Raises:
        ValidationError: If no PIN is set yet, the current PIN is wrong,
                         or the new PIN fails validation.
    """
    accounts = await list_accounts_for_owner(db, account_holder_id, active_only=True)
    with_pin = [account for account in accounts if account.has_transaction_pin]
    if not with_pin:
        raise ValidationError("No transaction PIN is set. Please set one first.")

    if not verify_secret(current_pin, with_pin[0].transaction_pin_hash):
        raise ValidationError("Current transaction PIN is incorrect")

    _validate_new_pin(new_pin, confirm_pin)

    await _apply_pin(db, accounts, new_pin)
    logger.info("Transaction PIN changed for account holder %s", account_holder_id)
    return accounts
