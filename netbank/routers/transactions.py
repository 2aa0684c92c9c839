"""
Transactions router — transaction history for a member's accounts.

Endpoints (mounted under /accounts):
  GET /accounts/{account_id}/transactions                   — List transactions
  GET /accounts/{account_id}/transactions/{transaction_id}  — Get one transaction

Transactions are created only by money movements (/transfers, /deposits);
this router is read-only.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_current_account_holder
from netbank.models.account_holder import AccountHolder
from netbank.models.transaction import TransactionStatus, TransactionType
from netbank.schemas.transaction import TransactionResponse
from netbank.services import transaction_service

router = APIRouter()


@router.get(
    "/{account_id}/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions for an account",
)
async def list_transactions(
    account_id: uuid.UUID,
    status: TransactionStatus | None = Query(None, description="Filter by status"),
    type: TransactionType | None = Query(None, description="Filter by type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """
    List transactions for a specific account, newest first.

    Supports optional filtering by status and type, plus pagination.
    """
    return await transaction_service.get_transactions(
        db=db,
        account_id=account_id,
        account_holder_id=account_holder.id,
        status_filter=status,
        type_filter=type,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{account_id}/transactions/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a single transaction",
)
async def get_transaction(
    account_id: uuid.UUID,
    transaction_id: uuid.UUID,
    account_holder: AccountHolder = Depends(get_current_account_holder),
    db: AsyncSession = Depends(get_db),
):
    """Get details for a specific transaction."""
    return await transaction_service.get_transaction(
        db=db,
        account_id=account_id,
        transaction_id=transaction_id,
        account_holder_id=account_holder.id,
    )
