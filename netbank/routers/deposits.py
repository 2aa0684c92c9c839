"""
Deposits router — money coming into a member's account.

Endpoints:
  POST /deposits/cash   — Cash deposit, credited immediately
  POST /deposits/check  — Check deposit, recorded as pending until cleared
  POST /deposits/wire   — Incoming wire, credited immediately (T-PIN required)

Every deposit goes through the transfer engine, which enforces the
per-kind amount limits and records the transaction with a reference
number.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.schemas.transaction import (
    CashDepositRequest,
    CheckDepositRequest,
    WireDepositRequest,
    TransactionResponse,
)
from netbank.services import transfer_service

router = APIRouter()


@router.post(
    "/cash",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Deposit cash",
)
async def cash_deposit(
    request: CashDepositRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """Credit cash to one of your accounts ($1.00 to $50,000.00)."""
    return await transfer_service.cash_deposit(
        db,
        account_holder_id=account_holder.id,
        account_id=request.account_id,
        amount_cents=request.amount_cents,
        description=request.description,
    )


@router.post(
    "/check",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Deposit a check",
)
async def check_deposit(
    request: CheckDepositRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a check ($1.00 to $100,000.00) for clearance.

    The transaction is returned as **pending** and the balance is not
    credited until an administrator clears the check.
    """
    return await transfer_service.check_deposit(
        db,
        account_holder_id=account_holder.id,
        account_id=request.account_id,
        amount_cents=request.amount_cents,
        check_number=request.check_number,
        description=request.description,
    )


@router.post(
    "/wire",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Receive an incoming wire",
)
async def wire_deposit(
    request: WireDepositRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """Credit an incoming wire ($1.00 to $1,000,000.00). Requires the T-PIN."""
    return await transfer_service.wire_incoming(
        db,
        account_holder_id=account_holder.id,
        account_id=request.account_id,
        amount_cents=request.amount_cents,
        pin=request.transaction_pin,
        sender_name=request.sender_name,
        sender_bank=request.sender_bank,
        description=request.description,
    )
