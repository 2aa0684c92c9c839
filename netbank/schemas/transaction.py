"""
Pydantic schemas for transactions, transfers and deposits.

All monetary amounts are in integer cents (e.g., $10.50 = 1050). The
per-kind amount limits are enforced by the transfer engine, which knows
the configured bounds; the schemas only reject non-positive amounts.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from netbank.models.transaction import TransactionStatus, TransactionType


class TransactionResponse(BaseModel):
    """Public representation of a transaction."""
    id: uuid.UUID
    reference_number: str
    type: TransactionType
    status: TransactionStatus
    amount_cents: int
    from_account_id: uuid.UUID
    to_account_id: uuid.UUID | None
    to_account_number: str
    description: str | None
    status_reason: str | None
    settled_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransferRequest(BaseModel):
    """Request body for POST /transfers."""
    from_account_id: uuid.UUID
    to_account_number: str = Field(min_length=1, max_length=20)
    amount_cents: int = Field(gt=0, description="Amount in cents (must be positive)")
    transaction_pin: str = Field(min_length=1)
    description: str | None = Field(None, max_length=200)


class CashDepositRequest(BaseModel):
    """Request body for POST /deposits/cash."""
    account_id: uuid.UUID
    amount_cents: int = Field(gt=0, description="Amount in cents (must be positive)")
    description: str | None = Field(None, max_length=200)


class CheckDepositRequest(BaseModel):
    """Request body for POST /deposits/check."""
    account_id: uuid.UUID
    amount_cents: int = Field(gt=0, description="Amount in cents (must be positive)")
    check_number: str = Field(min_length=1, max_length=20)
    description: str | None = Field(None, max_length=200)


class WireDepositRequest(BaseModel):
    """Request body for POST /deposits/wire."""
    account_id: uuid.UUID
    amount_cents: int = Field(gt=0, description="Amount in cents (must be positive)")
    sender_name: str = Field(min_length=1, max_length=100)
    sender_bank: str | None = Field(None, max_length=100)
    transaction_pin: str = Field(min_length=1)
    description: str | None = Field(None, max_length=100)


class CheckDepositFailRequest(BaseModel):
    """Request body for POST /admin/transactions/{id}/reject."""
    reason: str | None = Field(None, max_length=200)
