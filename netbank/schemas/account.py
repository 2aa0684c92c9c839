"""
Pydantic schemas for Account endpoints.

These schemas define the API contract for account retrieval, lookup and
balance checking. All monetary amounts are expressed in integer cents.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from netbank.models.account import AccountType


class AccountCreateRequest(BaseModel):
    """Request body for POST /admin/users/{user_id}/accounts."""
    account_type: AccountType = Field(
        default=AccountType.CHECKING,
        description="Type of bank account to open",
    )


class AccountResponse(BaseModel):
    """Public representation of a bank account (never the T-PIN hash)."""
    id: uuid.UUID
    account_holder_id: uuid.UUID
    account_type: AccountType
    account_number: str
    balance_cents: int
    currency: str
    is_active: bool
    has_transaction_pin: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountLookupResponse(BaseModel):
    """Minimal account info returned by the lookup endpoint.

    Intentionally excludes balance and owner details — this is used by
    members to verify an account number before initiating a transfer.
    """
    account_number: str
    account_type: AccountType
    is_active: bool

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    """
    Balance check response — includes both cached and computed values.

    The `match` field indicates whether the stored balance agrees with
    the balance computed from completed transactions. A mismatch would
    indicate a data integrity issue.
    """
    account_id: uuid.UUID
    account_number: str
    balance_cents: int
    computed_balance_cents: int
    match: bool
    currency: str
