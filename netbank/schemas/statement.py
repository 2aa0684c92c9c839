"""
Pydantic schemas for account statement endpoints.

A statement is produced per account, for one month or a whole year. The
response structure puts aggregate data at the top (opening/closing
balance, totals) followed by the full list of transactions for that
period.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel

from netbank.schemas.transaction import TransactionResponse


class StatementResponse(BaseModel):
    """Account statement.

    Aggregates appear first — these are the "header" a user sees at the
    top of their statement. The full transaction list follows, ordered
    chronologically so the user can scroll through every transaction.
    """
    # --- Statement metadata ---
    account_id: uuid.UUID
    account_number: str
    year: int
    month: int | None          # None for an annual statement
    period_start: datetime
    period_end: datetime

    # --- Aggregates (top of statement) ---
    opening_balance_cents: int
    closing_balance_cents: int
    total_credits_cents: int
    total_debits_cents: int
    transaction_count: int

    # --- Full transaction list (scrollable) ---
    transactions: list[TransactionResponse]
