"""
Account Holders router — profile and transaction PIN endpoints.

These endpoints let authenticated members view and update their banking
profile (AccountHolder) and manage their T-PIN. Every request requires a
valid JWT token and passes the session-role guard.

Endpoints:
  GET   /account-holders/me                        — Get current user's profile
  PATCH /account-holders/me                        — Update profile fields
  PUT   /account-holders/me/transaction-pin        — Set / reset the T-PIN
  POST  /account-holders/me/transaction-pin/change — Change the T-PIN
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.schemas.account_holder import (
    AccountHolderResponse,
    AccountHolderUpdateRequest,
    TransactionPinChangeRequest,
    TransactionPinResetRequest,
    TransactionPinResponse,
)
from netbank.services import profile_service

router = APIRouter()


@router.get(
    "/me",
    response_model=AccountHolderResponse,
    summary="Get current user's profile",
)
async def get_my_profile(
    account_holder: AccountHolder = Depends(get_current_account_holder),
):
    """
    Return the authenticated user's account holder profile.

    The JWT token identifies the user, and the dependency chain resolves
    the associated AccountHolder automatically.
    """
    return account_holder


@router.patch(
    "/me",
    response_model=AccountHolderResponse,
    summary="Update profile fields",
)
async def update_my_profile(
    updates: AccountHolderUpdateRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the authenticated user's profile.

    Only provided fields are updated — omitted fields remain unchanged.
    """
    # model_dump(exclude_unset=True) only includes fields the client explicitly sent
    update_data = updates.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        setattr(account_holder, field, value)

    await db.flush()
    return account_holder


@router.put(
    "/me/transaction-pin",
    response_model=TransactionPinResponse,
    summary="Set or reset the transaction PIN",
)
async def reset_transaction_pin(
    request: TransactionPinResetRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Set the T-PIN on all active accounts. The old PIN is not required.

    Fund transfers and incoming wires are refused until a T-PIN is set.
    """
    accounts = await profile_service.reset_transaction_pin(
        db,
        account_holder.id,
        new_pin=request.new_pin,
        confirm_pin=request.confirm_pin,
    )
    return TransactionPinResponse(
        message="Transaction PIN has been set",
        accounts_updated=len(accounts),
    )


@router.post(
    "/me/transaction-pin/change",
    response_model=TransactionPinResponse,
    summary="Change the transaction PIN",
)
async def change_transaction_pin(
    request: TransactionPinChangeRequest,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """Change an existing T-PIN; the current PIN must verify."""
    accounts = await profile_service.change_transaction_pin(
        db,
        account_holder.id,
        current_pin=request.current_pin,
        new_pin=request.new_pin,
        confirm_pin=request.confirm_pin,
    )
    return TransactionPinResponse(
        message="Transaction PIN has been changed",
        accounts_updated=len(accounts),
    )
