"""
Login throttle — per-identity failed-attempt counter with timed lockout.

State machine (state stored on the User row):

    {Unlocked, failures=N} --failed login--> N += 1
                                             N >= MAX_FAILED_LOGIN_ATTEMPTS
                                               -> {Locked, until=now+LOCKOUT_MINUTES}
    {Unlocked, failures=N} --successful login--> failures = 0
    {Locked, until}        --any attempt before `until`--> rejected, no change
    {Locked, until}        --any attempt at/after `until`--> {Unlocked, 0},
                                                             then evaluate credentials

Unlocking is lazy: there is no background sweep, the lock is lifted by the
next login attempt that arrives after it expired.

These functions only mutate the User instance; the caller's session
persists the change (get_db commits even when the login fails).
"""

import logging
from datetime import datetime, timedelta, timezone

from netbank.config import settings
from netbank.models.user import User

logger = logging.getLogger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def release_expired_lock(user: User, now: datetime) -> None:
    """Transition {Locked, until <= now} back to {Unlocked, failures=0}."""
    locked_until = as_utc(user.locked_until)
    if user.is_locked and (locked_until is None or locked_until <= now):
        user.is_locked = False
        user.locked_until = None
        user.failed_login_attempts = 0
        logger.info("Login lock expired for user %s", user.id)


def is_locked(user: User, now: datetime) -> bool:
    """True while the lock is in effect. Call release_expired_lock() first."""
    locked_until = as_utc(user.locked_until)
    return user.is_locked and locked_until is not None and locked_until > now


def record_failure(user: User, now: datetime) -> bool:
    """
    Count a failed authentication.

    Returns:
        True if this failure locked the identity.
    """
    user.failed_login_attempts += 1
    user.last_failed_login_at = now

    if user.failed_login_attempts >= settings.MAX_FAILED_LOGIN_ATTEMPTS:
        user.is_locked = True
        user.locked_until = now + timedelta(minutes=settings.LOCKOUT_MINUTES)
        logger.warning(
            "User %s locked after %d failed login attempts",
            user.id,
            user.failed_login_attempts,
        )
        return True
    return False


def record_success(user: User) -> None:
    user.failed_login_attempts = 0
    user.last_failed_login_at = None
