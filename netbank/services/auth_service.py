"""
Authentication service — identities, credentials and sessions.

This module contains the core auth logic, separated from HTTP concerns.
The router calls these functions and translates the results into HTTP
responses. This separation means the business logic can be tested
without spinning up a web server.

Signup flow:
  1. Check that username and email are both unused
  2. Hash the password (passlib, Argon2 by default)
  3. Create User + AccountHolder + savings/checking pair in one transaction
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up the identity by username
  2. Lift an expired throttle lock; reject while a lock is in effect
  3. Verify the password, counting failures (third failure locks)
  4. Return a JWT carrying the role and session version snapshot

Security notes:
  - Unknown usernames, wrong passwords, inactive or role-less identities
    and role mismatches on /admin/login all produce the same
    InvalidCredentialsError, with no hint about remaining attempts
  - Sessions are discarded by bumping session_version, which every token
    embeds (logout, credential change, session-role guard)
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.config import settings
from netbank.exceptions import (
    AccountLockedError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from netbank.models.account import Account
from netbank.models.account_holder import AccountHolder
from netbank.models.user import User, Role
from netbank.security import hash_secret, verify_secret, create_access_token
from netbank.services import login_throttle
from netbank.services.account_service import create_default_accounts

logger = logging.getLogger(__name__)


def issue_token(user: User) -> str:
    """JWT with "sub" (identity), "role" and "sv" (session version) snapshots."""
    return create_access_token(
        data={
            "sub": str(user.id),
            "role": user.role.value if user.role else None,
            "sv": user.session_version,
        }
    )


async def _get_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def _ensure_unique_identity(
    db: AsyncSession,
    username: str,
    email: str,
    exclude_user_id: uuid.UUID | None = None,
) -> None:
    for column, field, value in (
        (User.username, "username", username),
        (User.email, "email", email),
    ):
        query = select(User.id).where(column == value)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise DuplicateIdentityError(field, value)


async def signup(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    address: str | None = None,
) -> tuple[User, AccountHolder, list[Account], str]:
    """
    Register a new member with their banking profile and account pair.

    All records are created in the caller's transaction — if any step
    fails, none of them is persisted.

    Returns:
        Tuple of (User, AccountHolder, [savings, checking], JWT token).

    Raises:
        DuplicateIdentityError: If the username or email is already registered.
    """
    await _ensure_unique_identity(db, username, email)

    user = User(
        username=username,
        email=email,
        hashed_password=hash_secret(password),
        role=Role.USER,
        session_version=0,
    )
    db.add(user)
    # Flush to get the user.id assigned (needed for the FK below)
    await db.flush()

    account_holder = AccountHolder(
        user_id=user.id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        address=address,
    )
    db.add(account_holder)
    await db.flush()

    accounts = await create_default_accounts(db, account_holder.id)
    logger.info("Registered user %s with %d accounts", user.id, len(accounts))

    return user, account_holder, accounts, issue_token(user)


async def login(
    db: AsyncSession,
    username: str,
    password: str,
    required_role: Role | None = None,
) -> tuple[User, str]:
    """
    Authenticate an identity through the login throttle.

    Throttle state changes are left in the session; the request session
    commits them even when this raises.

    Raises:
        AccountLockedError: While a lock is in effect (even with the right
                            password), or when this failure caused the lock.
        InvalidCredentialsError: For every other rejection.
    """
    now = datetime.now(timezone.utc)
    user = await _get_by_username(db, username)

    # Same error for unknown usernames and wrong passwords
    if user is None:
        raise InvalidCredentialsError()

    login_throttle.release_expired_lock(user, now)
    if login_throttle.is_locked(user, now):
        raise AccountLockedError()

    if not verify_secret(password, user.hashed_password):
        if login_throttle.record_failure(user, now):
            raise AccountLockedError()
        raise InvalidCredentialsError()

    if not user.is_active or user.role is None:
        raise InvalidCredentialsError()
    if required_role is not None and user.role != required_role:
        raise InvalidCredentialsError()

    login_throttle.record_success(user)
    await db.flush()
    logger.info("User %s logged in as %s", user.id, user.role.value)
    return user, issue_token(user)


async def logout(db: AsyncSession, user: User) -> None:
    """Discard every outstanding session of this identity."""
    user.session_version += 1
    await db.flush()
    logger.info("User %s logged out", user.id)


async def bootstrap_default_admin(db: AsyncSession) -> User | None:
    """
    Create the default administrator if no administrator exists yet.

    Idempotent: once any admin exists this does nothing, and it never
    resets an existing identity's password.

    Returns:
        The created admin, or None when nothing was done.
    """
    if not settings.BOOTSTRAP_DEFAULT_ADMIN:
        return None

    result = await db.execute(select(User.id).where(User.role == Role.ADMIN).limit(1))
    if result.scalar_one_or_none() is not None:
        return None

    username = settings.DEFAULT_ADMIN_USERNAME
    if await _get_by_username(db, username) is not None:
        logger.warning(
            "No administrator exists, but username %r is taken; skipping bootstrap",
            username,
        )
        return None

    admin = User(
        username=username,
        email=settings.DEFAULT_ADMIN_EMAIL,
        hashed_password=hash_secret(settings.DEFAULT_ADMIN_PASSWORD),
        role=Role.ADMIN,
        session_version=0,
        uses_default_credentials=True,
    )
    db.add(admin)
    await db.flush()
    logger.warning(
        "Created default administrator %r; change its credentials before going live",
        username,
    )
    return admin


async def change_admin_credentials(
    db: AsyncSession,
    admin: User,
    current_username: str,
    current_password: str,
    new_username: str,
    new_password: str,
) -> User:
    """
    Replace an administrator's username and password.

    Existing sessions (including the caller's) are discarded.

    Raises:
        ValidationError: If the current credentials don't match.
        DuplicateIdentityError: If the new username belongs to someone else.
    """
    if current_username != admin.username or not verify_secret(
        current_password, admin.hashed_password
    ):
        raise ValidationError("Current username or password is incorrect")

    if new_username != admin.username:
        existing = await _get_by_username(db, new_username)
        if existing is not None:
            raise DuplicateIdentityError("username", new_username)

    admin.username = new_username
    admin.hashed_password = hash_secret(new_password)
    admin.uses_default_credentials = False
    admin.session_version += 1
    await db.flush()
    logger.info("Administrator %s changed credentials", admin.id)
    return admin


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def list_users(db: AsyncSession) -> list[User]:
    """[ADMIN ONLY] Every identity, oldest first."""
    result = await db.execute(select(User).order_by(User.created_at))
    return list(result.scalars().all())


async def change_role(
    db: AsyncSession,
    user_id: uuid.UUID,
    role: Role | None,
) -> User:
    """
    [ADMIN ONLY] Assign a role, or None to revoke it.

    Outstanding sessions carry the old role snapshot; the session-role
    guard discards them on their next request.
    """
    user = await get_user(db, user_id)
    previous = user.role
    user.role = role
    await db.flush()
    logger.info(
        "Role of user %s changed from %s to %s",
        user.id,
        previous.value if previous else None,
        role.value if role else None,
    )
    return user
