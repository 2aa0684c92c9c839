"""
Notification service — in-app messages for users.

notify() is the sink other services call after their own work has been
committed. It writes through a session of its own, so a failure here can
neither roll back nor expire anything in the caller's session; failures
are logged and dropped.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from netbank.exceptions import NotFoundError
from netbank.models.notification import Notification

logger = logging.getLogger(__name__)


async def notify(
    bind: AsyncEngine,
    user_id: uuid.UUID,
    title: str,
    message: str,
    category: str,
    related_entity_id: uuid.UUID | str | None = None,
    related_entity_type: str | None = None,
) -> None:
    """Fire-and-forget: never raises for storage failures."""
    session_factory = async_sessionmaker(bind, expire_on_commit=False)
    try:
        async with session_factory() as session:
            session.add(
                Notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    category=category,
                    related_entity_id=(
                        str(related_entity_id) if related_entity_id is not None else None
                    ),
                    related_entity_type=related_entity_type,
                )
            )
            await session.commit()
    except SQLAlchemyError:
        logger.exception("Dropped notification %r for user %s", title, user_id)


async def list_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    include_read: bool = False,
) -> list[Notification]:
    """Newest first. Unread only unless include_read is set."""
    query = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    if not include_read:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query)
    return list(result.scalars().all())


async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id))
        .where(Notification.user_id == user_id)
        .where(Notification.is_read.is_(False))
    )
    return result.scalar_one()


async def mark_read(
    db: AsyncSession,
    user_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> Notification:
    """
    Mark one notification read. Already-read notifications are left as is.

    Raises:
        NotFoundError: If the notification doesn't exist or isn't the caller's.
    """
    result = await db.execute(
        select(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        await db.flush()
    return notification


async def mark_all_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Returns how many notifications were marked."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read.is_(False))
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    return result.rowcount
