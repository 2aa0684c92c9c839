"""
Accounts router — member views of their bank accounts.

Endpoints (require JWT, scoped to the authenticated member):
  GET /accounts                         — List own accounts
  GET /accounts/lookup?account_number=  — Check a transfer destination
  GET /accounts/{account_id}            — Get own account details
  GET /accounts/{account_id}/balance    — Get own account balance

Members cannot open accounts themselves: the savings + checking pair is
opened at signup and further accounts are opened by an administrator.
Admin views of every account live in the admin router.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.schemas.account import AccountResponse, AccountLookupResponse, BalanceResponse
from netbank.services import account_service

router = APIRouter()


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    List all bank accounts owned by the authenticated user.

    Only returns accounts belonging to the current user — there is no
    way to see other users' accounts through this endpoint.
    """
    return await account_service.list_accounts_for_owner(db, account_holder.id)


# Declared before /{account_id} so "lookup" isn't parsed as an id
@router.get(
    "/lookup",
    response_model=AccountLookupResponse,
    summary="Look up an account by number",
)
async def lookup_account(
    account_number: str = Query(..., min_length=1, max_length=20),
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm that an account number exists before sending money to it.

    Only the number, type and active flag are returned — never the
    balance or the owner.
    """
    return await account_service.get_account_by_number(db, account_number)


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Get details for a specific account.

    Returns 404 both if the account doesn't exist and if it belongs to a
    different user.
    """
    return await account_service.get_account(db, account_id, account_holder.id)


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Check account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the account balance — both stored and computed from transactions.

    The response includes a `match` boolean indicating whether the stored
    balance agrees with the sum of completed transactions. A mismatch would
    indicate a data integrity issue that needs investigation.
    """
    return await account_service.get_balance(db, account_id, account_holder.id)
