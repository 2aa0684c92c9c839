"""
Statements router — account statement generation.

Endpoints:
  GET /accounts/{account_id}/statements?year=YYYY[&month=MM]

Generates a monthly statement, or an annual one when `month` is omitted.
The response includes aggregate data (opening/closing balance, totals)
at the top, followed by the full list of transactions for the period.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.schemas.statement import StatementResponse
from netbank.services import statement_service

router = APIRouter()


@router.get(
    "/{account_id}/statements",
    response_model=StatementResponse,
    summary="Get an account statement",
)
async def get_statement(
    account_id: uuid.UUID,
    year: int = Query(..., ge=2000, le=2100, description="Statement year"),
    month: int | None = Query(None, ge=1, le=12, description="Statement month (1-12); omit for the whole year"),
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Generate a statement for an account.

    The statement includes:
    - **Opening balance**: Account balance at the start of the period
    - **Closing balance**: Account balance at the end of the period
    - **Total credits/debits**: Money settled in and out during the period
    - **Transaction count**: Number of transactions in the period
    - **Transactions**: Full list of every transaction, ordered chronologically
    """
    return await statement_service.generate_statement(
        db=db,
        account_id=account_id,
        account_holder_id=account_holder.id,
        year=year,
        month=month,
    )
