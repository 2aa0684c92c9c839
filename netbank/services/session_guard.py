"""
Session-role guard — decides whether a session may still be used.

A session (JWT) carries a snapshot of the identity's role and session
version taken when it was issued. Before every user-space or admin-space
handler runs, the guard compares that snapshot with the identity as it is
stored *now*:

    identity missing or inactive     -> invalidate (identity_unavailable)
    identity has no role             -> invalidate (no_role)
    session version no longer equal  -> invalidate (session_revoked)
    stored role != role snapshot     -> invalidate (role_changed)
    user role requests admin space   -> invalidate (admin_space_denied)
    admin role requests user space   -> invalidate (user_space_denied)
    otherwise                        -> allow

evaluate() is pure: it only reads its arguments. enforce() applies a
negative decision: it bumps the identity's session_version, which discards
every outstanding session for it, and raises SessionExpiredError. The
request session commits that bump even though the request fails.
"""

import enum
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from netbank.config import settings
from netbank.exceptions import SessionExpiredError
from netbank.models.user import User, Role

logger = logging.getLogger(__name__)


class ResourceClass(str, enum.Enum):
    USER_SPACE = "user_space"
    ADMIN_SPACE = "admin_space"


@dataclass(frozen=True)
class RequestContext:
    """What the request claims: the token's snapshot plus the space it targets."""
    role_snapshot: Role | None
    session_version: int
    resource_class: ResourceClass


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    reason: str | None = None
    redirect_to: str | None = None


def entry_point_for(user: User | None) -> str:
    """Login page matching the identity's current role, flagged for the UI."""
    if user is not None and user.role == Role.ADMIN:
        base = settings.ADMIN_ENTRY_POINT
    else:
        base = settings.USER_ENTRY_POINT
    return f"{base}?message=session_expired"


def _deny(user: User | None, reason: str) -> GuardDecision:
    return GuardDecision(allowed=False, reason=reason, redirect_to=entry_point_for(user))


def evaluate(context: RequestContext, user: User | None) -> GuardDecision:
    if user is None or not user.is_active:
        return _deny(user, "identity_unavailable")
    if user.role is None:
        return _deny(user, "no_role")
    if context.session_version != user.session_version:
        return _deny(user, "session_revoked")
    if context.role_snapshot != user.role:
        return _deny(user, "role_changed")
    if user.role == Role.USER and context.resource_class == ResourceClass.ADMIN_SPACE:
        return _deny(user, "admin_space_denied")
    if user.role == Role.ADMIN and context.resource_class == ResourceClass.USER_SPACE:
        return _deny(user, "user_space_denied")
    return GuardDecision(allowed=True)


async def enforce(
    db: AsyncSession,
    context: RequestContext,
    user: User | None,
) -> User:
    """
    Return the user if the session may proceed.

    Raises:
        SessionExpiredError: After discarding every session of the identity.
    """
    decision = evaluate(context, user)
    if decision.allowed:
        return user

    if user is not None:
        user.session_version += 1
        await db.flush()
        logger.warning(
            "Session invalidated for user %s (%s) on %s",
            user.id,
            decision.reason,
            context.resource_class.value,
        )
    raise SessionExpiredError(redirect_to=decision.redirect_to, reason=decision.reason)
