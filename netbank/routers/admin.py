"""
Admin router — back-office endpoints.

Every endpoint except /admin/login requires an admin-space session
(require_admin runs the session-role guard). Administrators oversee the
ledger but never move money on a member's behalf: the only balance
effect they can cause is clearing a pending check deposit.

Endpoints:
  POST  /admin/login                               — Admin login (admin role only)
  GET   /admin/credentials                         — Own username / default-credentials flag
  PUT   /admin/credentials                         — Change own username and password
  GET   /admin/users                               — List identities
  PATCH /admin/users/{user_id}/role                — Change (or revoke) a role
  POST  /admin/users/{user_id}/accounts            — Open an account for a member
  GET   /admin/accounts                            — List ALL accounts
  GET   /admin/accounts/{account_id}               — Get any account's details
  GET   /admin/accounts/{account_id}/balance       — Get any account's balance
  GET   /admin/accounts/{account_id}/transactions  — List any account's transactions
  POST  /admin/accounts/{account_id}/activate      — Reactivate an account
  POST  /admin/accounts/{account_id}/deactivate    — Deactivate an account
  GET   /admin/transactions                        — List ALL transactions org-wide
  GET   /admin/transactions/{transaction_id}       — Get any transaction by ID
  POST  /admin/transactions/{transaction_id}/clear — Clear a pending check deposit
  POST  /admin/transactions/{transaction_id}/reject — Fail a pending check deposit
  GET   /admin/service-requests                    — List all service requests
  POST  /admin/service-requests/{id}/respond       — Answer a request
  POST  /admin/service-requests/{id}/mark-ready    — Mark an approved card ready
  GET   /admin/reports/transactions                — Counts and totals by type/status

By consolidating all admin routes in one router, we avoid route-ordering
conflicts that arise when multiple routers share a prefix and have
overlapping parameterized paths.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import require_admin
from netbank.models.service_request import ServiceRequestStatus
from netbank.models.transaction import TransactionStatus, TransactionType
from netbank.models.user import User, Role
from netbank.schemas.account import AccountCreateRequest, AccountResponse, BalanceResponse
from netbank.schemas.auth import UserLoginRequest, TokenResponse
from netbank.schemas.service_request import (
    ServiceRequestRespondRequest,
    ServiceRequestResponse,
)
from netbank.schemas.transaction import CheckDepositFailRequest, TransactionResponse
from netbank.schemas.user import (
    AdminCredentialsResponse,
    AdminCredentialsUpdateRequest,
    RoleUpdateRequest,
    TransactionReportResponse,
    UserResponse,
)
from netbank.services import (
    account_service,
    auth_service,
    report_service,
    service_request_service,
    transaction_service,
    transfer_service,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Login and own credentials
# ---------------------------------------------------------------------------

@router.post(
    "/login",
    response_model=TokenResponse,
    summary="[Admin] Authenticate and get a token",
)
async def admin_login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Admin entry point. Same throttle as /auth/login; identities without
    the admin role are refused with the generic invalid-credentials error.
    """
    user, token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
        required_role=Role.ADMIN,
    )
    return TokenResponse(
        token=token,
        role=user.role.value,
        uses_default_credentials=user.uses_default_credentials,
    )


@router.get(
    "/credentials",
    response_model=AdminCredentialsResponse,
    summary="[Admin] Show own credential status",
)
async def get_credentials(admin: User = Depends(require_admin)):
    return admin


@router.put(
    "/credentials",
    response_model=AdminCredentialsResponse,
    summary="[Admin] Change own username and password",
)
async def change_credentials(
    request: AdminCredentialsUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace the admin's username and password.

    All sessions of this admin, including the current one, are discarded;
    log in again with the new credentials.
    """
    return await auth_service.change_admin_credentials(
        db,
        admin,
        current_username=request.current_username,
        current_password=request.current_password,
        new_username=request.new_username,
        new_password=request.new_password,
    )


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------

@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="[Admin] List users",
)
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await auth_service.list_users(db)


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    summary="[Admin] Change a user's role",
)
async def change_role(
    user_id: uuid.UUID,
    request: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Assign "user", "admin" or null (no role).

    The change takes effect on the identity's next request: its existing
    sessions carry the old role and are discarded by the session-role guard.
    """
    return await auth_service.change_role(db, user_id, request.role)


@router.post(
    "/users/{user_id}/accounts",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Admin] Open an account for a member",
)
async def open_account(
    user_id: uuid.UUID,
    request: AccountCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Open an additional zero-balance account with no T-PIN set."""
    return await account_service.admin_open_account(db, user_id, request.account_type)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@router.get(
    "/accounts",
    response_model=list[AccountResponse],
    summary="[Admin] List all accounts",
)
async def admin_list_all_accounts(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List all accounts across all account holders."""
    return await account_service.admin_get_all_accounts(db)


@router.get(
    "/accounts/{account_id}",
    response_model=AccountResponse,
    summary="[Admin] Get any account's details",
)
async def admin_get_account(
    account_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get any account's details without ownership check."""
    return await account_service.admin_get_account(db, account_id)


@router.get(
    "/accounts/{account_id}/balance",
    response_model=BalanceResponse,
    summary="[Admin] Get any account's balance",
)
async def admin_get_balance(
    account_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Get any account's balance without ownership check.

    Includes both stored and computed balance for integrity verification.
    """
    return await account_service.admin_get_balance(db, account_id)


@router.get(
    "/accounts/{account_id}/transactions",
    response_model=list[TransactionResponse],
    summary="[Admin] List any account's transactions",
)
async def admin_get_account_transactions(
    account_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.admin_get_account_transactions(
        db=db,
        account_id=account_id,
        limit=limit,
        offset=offset,
    )


@router.post(
    "/accounts/{account_id}/activate",
    response_model=AccountResponse,
    summary="[Admin] Reactivate an account",
)
async def activate_account(
    account_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.admin_set_account_active(db, account_id, True)


@router.post(
    "/accounts/{account_id}/deactivate",
    response_model=AccountResponse,
    summary="[Admin] Deactivate an account",
)
async def deactivate_account(
    account_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Deactivated accounts can neither send nor receive money. Nothing is deleted."""
    return await account_service.admin_set_account_active(db, account_id, False)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@router.get(
    "/transactions",
    response_model=list[TransactionResponse],
    summary="[Admin] List all transactions",
)
async def admin_list_all_transactions(
    status: TransactionStatus | None = Query(None, description="Filter by status"),
    type: TransactionType | None = Query(None, description="Filter by type"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    List ALL transactions across the entire organization, newest first.

    `?status=pending&type=check_deposit` lists the checks awaiting clearance.
    """
    return await transaction_service.admin_get_all_transactions(
        db=db,
        status_filter=status,
        type_filter=type,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/transactions/{transaction_id}",
    response_model=TransactionResponse,
    summary="[Admin] Get any transaction",
)
async def admin_get_transaction(
    transaction_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.admin_get_transaction(db, transaction_id)


@router.post(
    "/transactions/{transaction_id}/clear",
    response_model=TransactionResponse,
    summary="[Admin] Clear a pending check deposit",
)
async def clear_check_deposit(
    transaction_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """pending -> completed; the account is credited in the same unit."""
    return await transfer_service.clear_check_deposit(db, transaction_id)


@router.post(
    "/transactions/{transaction_id}/reject",
    response_model=TransactionResponse,
    summary="[Admin] Fail a pending check deposit",
)
async def fail_check_deposit(
    transaction_id: uuid.UUID,
    request: CheckDepositFailRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """pending -> failed; the balance is untouched."""
    return await transfer_service.fail_check_deposit(db, transaction_id, request.reason)


# ---------------------------------------------------------------------------
# Service requests
# ---------------------------------------------------------------------------

@router.get(
    "/service-requests",
    response_model=list[ServiceRequestResponse],
    summary="[Admin] List service requests",
)
async def list_service_requests(
    status: ServiceRequestStatus | None = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await service_request_service.list_all_requests(db, status)


@router.post(
    "/service-requests/{request_id}/respond",
    response_model=ServiceRequestResponse,
    summary="[Admin] Respond to a service request",
)
async def respond_to_service_request(
    request_id: uuid.UUID,
    request: ServiceRequestRespondRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Answer a pending request. Debit card requests need `action`:
    "approve" sets the card ETA seven business days out, "reject" declines it.
    """
    return await service_request_service.respond(
        db, request_id, request.response, request.action
    )


@router.post(
    "/service-requests/{request_id}/mark-ready",
    response_model=ServiceRequestResponse,
    summary="[Admin] Mark an approved card as ready",
)
async def mark_card_ready(
    request_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await service_request_service.mark_card_ready(db, request_id)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

@router.get(
    "/reports/transactions",
    response_model=TransactionReportResponse,
    summary="[Admin] Transaction report",
)
async def transaction_report(
    start: datetime | None = Query(None, description="Inclusive lower bound on created_at"),
    end: datetime | None = Query(None, description="Exclusive upper bound on created_at"),
    type: TransactionType | None = Query(None),
    status: TransactionStatus | None = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Counts and totals grouped by transaction type and status."""
    return await report_service.transaction_report(
        db, start=start, end=end, type_filter=type, status_filter=status
    )
