"""
FastAPI dependencies for authentication and the session-role guard.

Dependencies are reusable functions that FastAPI injects into route handlers.
They form a dependency chain:

  get_session_claims (JWT -> SessionClaims)
      ├── get_member_user        (guard, user space)  -> User
      │       └── get_current_account_holder          -> AccountHolder
      ├── require_admin          (guard, admin space) -> User
      └── get_authenticated_user (no space, logout)   -> User

A missing, expired or tampered token is rejected with 401 before any
lookup happens. A valid token then passes through the session-role guard
(services/session_guard.py): if the identity's stored role or session
version no longer matches the token, or the role doesn't fit the space,
every session of that identity is discarded and the request fails with
401 session_expired plus the entry point to log in again.

Every protected endpoint declares one of these as a parameter. FastAPI
automatically calls the dependency, and if it fails the request is
rejected before the route handler runs.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.exceptions import NotFoundError
from netbank.models.account_holder import AccountHolder
from netbank.models.user import User, Role
from netbank.security import decode_access_token
from netbank.services.session_guard import RequestContext, ResourceClass, enforce


# OAuth2PasswordBearer tells FastAPI where to look for the token:
# the "Authorization: Bearer <token>" header. The tokenUrl points to
# the login endpoint (used by Swagger UI's "Authorize" button).
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class SessionClaims:
    user_id: uuid.UUID
    role: Role | None
    session_version: int


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_session_claims(token: str = Depends(oauth2_scheme)) -> SessionClaims:
    """Decode the JWT. Raises HTTPException 401 if it can't be trusted."""
    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
        session_version = int(payload["sv"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise _credentials_exception()

    try:
        role = Role(payload.get("role")) if payload.get("role") else None
    except ValueError:
        role = None

    return SessionClaims(user_id=user_id, role=role, session_version=session_version)


async def _load_user(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def _guarded_user(
    claims: SessionClaims,
    db: AsyncSession,
    resource_class: ResourceClass,
) -> User:
    user = await _load_user(db, claims.user_id)
    context = RequestContext(
        role_snapshot=claims.role,
        session_version=claims.session_version,
        resource_class=resource_class,
    )
    return await enforce(db, context, user)


async def get_member_user(
    claims: SessionClaims = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The guarded identity behind a user-space request."""
    return await _guarded_user(claims, db, ResourceClass.USER_SPACE)


async def get_current_account_holder(
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
) -> AccountHolder:
    """
    Get the AccountHolder profile for the authenticated member.

    This is used by all member banking endpoints (accounts, transactions,
    transfers, deposits, statements, ...). Admin identities never get here:
    the guard rejects them from user space.

    Raises:
        NotFoundError: If the user has no account holder profile.
    """
    result = await db.execute(
        select(AccountHolder)
        .where(AccountHolder.user_id == user.id)
    )
    account_holder = result.scalar_one_or_none()

    if account_holder is None:
        raise NotFoundError("Account holder profile not found")

    return account_holder


async def require_admin(
    claims: SessionClaims = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Require an admin-space session.

    A member's token reaching an admin route is not merely refused: the
    guard discards the member's sessions as well.
    """
    return await _guarded_user(claims, db, ResourceClass.ADMIN_SPACE)


async def get_authenticated_user(
    claims: SessionClaims = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Any identity holding a still-current session, regardless of role.

    Used by logout, which must work from either space.
    """
    user = await _load_user(db, claims.user_id)
    if user is None or user.session_version != claims.session_version:
        raise _credentials_exception()
    return user
