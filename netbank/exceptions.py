"""
Custom exception classes and FastAPI exception handlers.

Services raise domain-specific errors (like InsufficientFundsError)
without importing HTTP concepts. The handler layer translates them into
consistent JSON responses: {"detail": "...", "error_type": "..."}.

Exception hierarchy:
    NetBankError (base)
    ├── ValidationError              — bad input / business rule rejected
    │   └── InsufficientFundsError   — outgoing amount exceeds the balance
    ├── AuthorizationError           — role mismatch
    │   └── SessionExpiredError      — session invalidated by the role guard
    ├── InvalidCredentialsError      — wrong username or password
    ├── AccountLockedError           — login throttle lockout in effect
    ├── NotFoundError                — unknown resource
    │   ├── AccountNotFoundError
    │   ├── TransactionNotFoundError
    │   └── ServiceRequestNotFoundError
    ├── ConflictError                — concurrent-mutation retries exhausted
    ├── DuplicateIdentityError       — username or email already registered
    └── SystemFaultError             — storage unavailable (generic message)
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class NetBankError(Exception):
    """Base exception for all NetBank domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(NetBankError):
    """Raised when input is well-formed but a business rule rejects it."""


class InsufficientFundsError(ValidationError):
    """
    Raised when an outgoing transfer would cause a negative balance.

    Attributes:
        account_id: The account that lacks sufficient funds.
        requested_cents: The amount the user tried to move.
        available_cents: The current balance of the account.
    """

    def __init__(
        self,
        account_id: uuid.UUID,
        requested_cents: int,
        available_cents: int,
    ):
        self.account_id = account_id
        self.requested_cents = requested_cents
        self.available_cents = available_cents
        super().__init__(
            f"Insufficient funds: requested {requested_cents} cents, "
            f"available {available_cents} cents"
        )


# ---------------------------------------------------------------------------
# Authentication / authorization
# ---------------------------------------------------------------------------

class AuthorizationError(NetBankError):
    """Raised when the caller's role does not allow the requested action."""

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(detail)


class SessionExpiredError(AuthorizationError):
    """
    Raised by the session-role guard after it has discarded a session.

    Attributes:
        redirect_to: Role-appropriate entry point carrying the
                     session-expired signal for the UI.
        reason: Machine-readable cause (role_changed, cross_role, ...).
    """

    def __init__(self, redirect_to: str, reason: str):
        self.redirect_to = redirect_to
        self.reason = reason
        super().__init__("Session expired. Your role has changed. Please log in again.")


class InvalidCredentialsError(NetBankError):
    """Raised when login credentials are incorrect."""

    def __init__(self):
        super().__init__("Invalid username or password")


class AccountLockedError(NetBankError):
    """Raised while the login throttle lock is in effect."""

    def __init__(self):
        super().__init__(
            "Your account is locked due to multiple failed login attempts. "
            "Please try again later."
        )


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------

class NotFoundError(NetBankError):
    """Raised when a requested resource does not exist."""

    error_type = "not_found"


class AccountNotFoundError(NotFoundError):
    """Raised when an account does not exist or is not visible to the caller."""

    error_type = "account_not_found"

    def __init__(self, account_ref: uuid.UUID | str):
        self.account_ref = account_ref
        super().__init__(f"Account {account_ref} not found")


class TransactionNotFoundError(NotFoundError):
    error_type = "transaction_not_found"

    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class ServiceRequestNotFoundError(NotFoundError):
    error_type = "service_request_not_found"

    def __init__(self, request_id: uuid.UUID):
        self.request_id = request_id
        super().__init__(f"Service request {request_id} not found")


# ---------------------------------------------------------------------------
# Conflicts and infrastructure faults
# ---------------------------------------------------------------------------

class ConflictError(NetBankError):
    """Raised when concurrent updates kept colliding and retries ran out."""

    def __init__(self, detail: str = "The account was busy. Please try again."):
        super().__init__(detail)


class DuplicateIdentityError(NetBankError):
    """Raised when registering a username or email that's already in use."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"{field.capitalize()} {value} is already registered")


class SystemFaultError(NetBankError):
    """Raised when the store fails; the detail shown to clients is generic."""

    def __init__(self, detail: str = "The service is temporarily unavailable. Please try again later."):
        super().__init__(detail)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps a domain exception to an HTTP status code and a
    consistent JSON body. Called once from main.py.
    """

    @app.exception_handler(InsufficientFundsError)
    async def insufficient_funds_handler(
        request: Request, exc: InsufficientFundsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.detail,
                "error_type": "insufficient_funds",
                "requested_cents": exc.requested_cents,
                "available_cents": exc.available_cents,
            },
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": exc.detail, "error_type": "validation_error"},
        )

    @app.exception_handler(SessionExpiredError)
    async def session_expired_handler(
        request: Request, exc: SessionExpiredError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={
                "detail": exc.detail,
                "error_type": "session_expired",
                "reason": exc.reason,
                "redirect_to": exc.redirect_to,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={"detail": exc.detail, "error_type": "unauthorized_access"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def invalid_credentials_handler(
        request: Request, exc: InvalidCredentialsError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "invalid_credentials"},
        )

    @app.exception_handler(AccountLockedError)
    async def account_locked_handler(
        request: Request, exc: AccountLockedError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=423,
            content={"detail": exc.detail, "error_type": "account_locked"},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(
        request: Request, exc: ConflictError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "conflict"},
        )

    @app.exception_handler(DuplicateIdentityError)
    async def duplicate_identity_handler(
        request: Request, exc: DuplicateIdentityError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": "duplicate_identity"},
        )

    @app.exception_handler(SystemFaultError)
    async def system_fault_handler(
        request: Request, exc: SystemFaultError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"detail": exc.detail, "error_type": "system_error"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        # Internal detail goes to the log only
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=503,
            content={"detail": SystemFaultError().detail, "error_type": "system_error"},
        )
