"""
Transfers router — fund transfers to another account.

Endpoints:
  POST /transfers — Send money from one of your accounts to an account number

A transfer is one atomic unit: the source is debited, the destination is
credited and a single completed transaction row referencing both
accounts is written, or nothing happens at all.

Only members can initiate transfers (the session-role guard keeps admins
out of user space). The source account must belong to the authenticated
user and the request must carry the account's transaction PIN; the
destination can belong to anyone.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.schemas.transaction import TransferRequest, TransactionResponse
from netbank.services import transfer_service

router = APIRouter()


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Transfer money to another account",
)
async def create_transfer(
    request: TransferRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Transfer money from one of your accounts to any account number.

    - **from_account_id**: Must belong to the authenticated user and be active
    - **to_account_number**: Must exist and be active, and differ from the source
    - **amount_cents**: Positive integer in cents (e.g., $50.00 = 5000)
    - **transaction_pin**: The source account's T-PIN

    Insufficient funds return 422 without any change. 409 means concurrent
    activity on the account kept colliding; the transfer can be retried.
    """
    return await transfer_service.fund_transfer(
        db,
        account_holder_id=account_holder.id,
        source_account_id=request.from_account_id,
        destination_number=request.to_account_number,
        amount_cents=request.amount_cents,
        pin=request.transaction_pin,
        description=request.description,
    )
