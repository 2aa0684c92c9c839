"""
Authentication router — signup, login and logout endpoints.

Signup and login are the only public (unauthenticated) member endpoints.
Everything else requires a valid JWT token.

Endpoints:
  POST /auth/signup  — Register a new member and get a token
  POST /auth/login   — Authenticate (through the login throttle) and get a token
  POST /auth/logout  — Discard every session of the caller

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are hashed before any database operation and never logged.
  - JWT tokens appear only in response bodies, which are not logged by
    uvicorn (it logs method, path, and status code only).
  - No request body logging middleware is installed, so POST bodies
    containing passwords or T-PINs are not written to any log file.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_authenticated_user
from netbank.models.user import User
from netbank.schemas.account import AccountResponse
from netbank.schemas.auth import (
    UserSignupRequest,
    UserLoginRequest,
    TokenResponse,
    SignupResponse,
    MessageResponse,
)
from netbank.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    request: UserSignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new bank member.

    Creates a User (authentication identity), an AccountHolder (banking
    profile) and a savings + checking account pair in a single atomic
    transaction. Returns a JWT token so the user is immediately logged in.

    - **username** / **email**: Must not already be registered
    - **password**: Minimum 8 characters
    - **first_name** / **last_name**: Required, 1-100 characters
    """
    user, _, accounts, token = await auth_service.signup(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
        address=request.address,
    )

    return SignupResponse(
        user_id=user.id,
        username=user.username,
        email=user.email,
        role=user.role.value,
        accounts=[AccountResponse.model_validate(account) for account in accounts],
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: UserLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Returns a JWT bearer token that must be included in the Authorization
    header for all subsequent requests:

        Authorization: Bearer <token>

    Three consecutive failures lock the identity for LOCKOUT_MINUTES
    (423 account_locked). The token expires after
    ACCESS_TOKEN_EXPIRE_MINUTES (default: 30).
    """
    user, token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )

    return TokenResponse(
        token=token,
        role=user.role.value,
        uses_default_credentials=user.uses_default_credentials,
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Log out of every session",
)
async def logout(
    user: User = Depends(get_authenticated_user),
    db: AsyncSession = Depends(get_db),
):
    """Invalidate all outstanding tokens of the caller, on every device."""
    await auth_service.logout(db, user)
    return MessageResponse(message="Logged out")
