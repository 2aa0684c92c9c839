"""
Service request service — customer requests answered by administrators.

Generic requests go pending -> responded. A "Debit Card Request" also
drives a card lifecycle:

    respond(approve) -> card approved, ETA = now + CARD_ETA_BUSINESS_DAYS
    respond(reject)  -> card rejected
    mark_card_ready / sweep_ready_cards -> approved card becomes ready

Customers are notified after each admin action has been committed.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from netbank.config import settings
from netbank.exceptions import ServiceRequestNotFoundError, ValidationError
from netbank.models.service_request import (
    DEBIT_CARD_REQUEST,
    CardStatus,
    ServiceRequest,
    ServiceRequestStatus,
)
from netbank.services import notification_service

logger = logging.getLogger(__name__)

CARD_ACTIONS = ("approve", "reject")


def add_business_days(start: datetime, business_days: int) -> datetime:
    """Step forward day by day, counting only Monday to Friday."""
    result = start
    added = 0
    while added < business_days:
        result += timedelta(days=1)
        if result.weekday() < 5:
            added += 1
    return result


async def submit_request(
    db: AsyncSession,
    user_id: uuid.UUID,
    request_type: str,
    description: str,
) -> ServiceRequest:
    """
    Raises:
        ValidationError: Missing type, description too short, or too many
                         requests still pending.
    """
    request_type = request_type.strip()
    description = description.strip()

    if not request_type:
        raise ValidationError("Please select a service type")
    if len(description) < settings.SERVICE_REQUEST_MIN_DESCRIPTION:
        raise ValidationError(
            f"Description must be at least "
            f"{settings.SERVICE_REQUEST_MIN_DESCRIPTION} characters long"
        )

    result = await db.execute(
        select(func.count(ServiceRequest.id))
        .where(ServiceRequest.user_id == user_id)
        .where(ServiceRequest.status == ServiceRequestStatus.PENDING)
    )
    if result.scalar_one() >= settings.MAX_PENDING_SERVICE_REQUESTS:
        raise ValidationError(
            "You have too many pending requests. "
            "Please wait for responses before submitting new ones."
        )

    service_request = ServiceRequest(
        user_id=user_id,
        request_type=request_type,
        description=description,
        status=ServiceRequestStatus.PENDING,
    )
    db.add(service_request)
    await db.flush()
    logger.info("Service request %s submitted by user %s", service_request.id, user_id)
    return service_request


async def list_my_requests(db: AsyncSession, user_id: uuid.UUID) -> list[ServiceRequest]:
    result = await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.user_id == user_id)
        .order_by(ServiceRequest.requested_at.desc())
    )
    return list(result.scalars().all())


async def list_all_requests(
    db: AsyncSession,
    status_filter: ServiceRequestStatus | None = None,
) -> list[ServiceRequest]:
    """[ADMIN ONLY] Every request, newest first."""
    query = select(ServiceRequest).order_by(ServiceRequest.requested_at.desc())
    if status_filter:
        query = query.where(ServiceRequest.status == status_filter)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_request(db: AsyncSession, request_id: uuid.UUID) -> ServiceRequest:
    result = await db.execute(
        select(ServiceRequest).where(ServiceRequest.id == request_id)
    )
    service_request = result.scalar_one_or_none()
    if service_request is None:
        raise ServiceRequestNotFoundError(request_id)
    return service_request


async def respond(
    db: AsyncSession,
    request_id: uuid.UUID,
    response: str,
    action: str | None = None,
) -> ServiceRequest:
    """
    [ADMIN ONLY] Answer a pending request and notify its owner.

    `action` ("approve" or "reject") is required for debit card requests
    and ignored otherwise.

    Raises:
        ServiceRequestNotFoundError: Unknown request.
        ValidationError: Already responded, or a card request without a
                         valid action.
    """
    service_request = await get_request(db, request_id)
    if service_request.status != ServiceRequestStatus.PENDING:
        raise ValidationError("This request has already been responded to")

    is_card_request = service_request.request_type == DEBIT_CARD_REQUEST
    if is_card_request and action not in CARD_ACTIONS:
        raise ValidationError("Debit card requests must be approved or rejected")

    now = datetime.now(timezone.utc)
    service_request.admin_response = response
    service_request.responded_at = now
    service_request.status = ServiceRequestStatus.RESPONDED

    if is_card_request and action == "approve":
        service_request.card_status = CardStatus.APPROVED
        service_request.eta_date = add_business_days(now, settings.CARD_ETA_BUSINESS_DAYS)
        title = "Debit card request approved"
        message = (
            "Your debit card request has been approved. Your card will be ready "
            f"by {service_request.eta_date:%B %d, %Y}."
        )
        category = "card"
    elif is_card_request:
        service_request.card_status = CardStatus.REJECTED
        title = "Debit card request rejected"
        message = f"Your debit card request has been rejected: {response}"
        category = "card"
    else:
        title = f"Response to {service_request.request_type}"
        message = f"Your {service_request.request_type} request has been responded to: {response}"
        category = "service_request"

    await db.commit()
    logger.info(
        "Service request %s responded (%s)",
        service_request.id,
        service_request.card_status.value if service_request.card_status else "generic",
    )

    await notification_service.notify(
        db.bind,
        service_request.user_id,
        title,
        message,
        category=category,
        related_entity_id=service_request.id,
        related_entity_type="service_request",
    )
    return service_request


async def _notify_card_ready(bind, user_id: uuid.UUID, request_id: uuid.UUID) -> None:
    await notification_service.notify(
        bind,
        user_id,
        "Your debit card is ready",
        "Your debit card is ready for pickup at your branch.",
        category="card",
        related_entity_id=request_id,
        related_entity_type="service_request",
    )


async def mark_card_ready(db: AsyncSession, request_id: uuid.UUID) -> ServiceRequest:
    """
    [ADMIN ONLY] approved -> ready, ahead of the ETA if need be.

    Raises:
        ServiceRequestNotFoundError: Unknown request.
        ValidationError: Not a card request, or the card isn't approved.
    """
    service_request = await get_request(db, request_id)
    if (
        service_request.request_type != DEBIT_CARD_REQUEST
        or service_request.card_status != CardStatus.APPROVED
    ):
        raise ValidationError("Card request not found or not approved")

    service_request.card_status = CardStatus.READY
    await db.commit()
    logger.info("Card for service request %s marked ready", service_request.id)

    await _notify_card_ready(db.bind, service_request.user_id, service_request.id)
    return service_request


async def sweep_ready_cards(
    session_factory: async_sessionmaker,
    now: datetime | None = None,
) -> int:
    """
    Promote every approved card whose ETA has passed to ready.

    Each request is promoted in its own transaction, so one failure
    leaves the others unaffected.

    Returns:
        The number of cards promoted.
    """
    now = now or datetime.now(timezone.utc)

    async with session_factory() as session:
        result = await session.execute(
            select(ServiceRequest.id)
            .where(ServiceRequest.card_status == CardStatus.APPROVED)
            .where(ServiceRequest.eta_date <= now)
        )
        due_ids = list(result.scalars().all())

    promoted = 0
    for request_id in due_ids:
        try:
            async with session_factory() as session:
                result = await session.execute(
                    select(ServiceRequest)
                    .where(ServiceRequest.id == request_id)
                    .where(ServiceRequest.card_status == CardStatus.APPROVED)
                    .with_for_update()
                )
                service_request = result.scalar_one_or_none()
                if service_request is None:
                    continue
                user_id = service_request.user_id
                service_request.card_status = CardStatus.READY
                await session.commit()
                bind = session.bind
        except SQLAlchemyError:
            logger.exception("Card sweep failed for service request %s", request_id)
            continue

        promoted += 1
        await _notify_card_ready(bind, user_id, request_id)

    if promoted:
        logger.info("Card sweep promoted %d card(s) to ready", promoted)
    return promoted
