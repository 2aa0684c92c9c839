"""
Service requests and notifications routers — member side.

Endpoints:
  POST /service-requests                    — Submit a request
  GET  /service-requests                    — List your requests
  GET  /notifications?include_read=false    — List your notifications
  GET  /notifications/unread-count          — Count unread notifications
  POST /notifications/{id}/read             — Mark one as read
  POST /notifications/read-all              — Mark all as read

Administrators answer requests through /admin/service-requests.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from netbank.database import get_db
from netbank.dependencies import get_member_user
from netbank.models.user import User
from netbank.schemas.service_request import (
    MarkAllReadResponse,
    NotificationResponse,
    ServiceRequestCreateRequest,
    ServiceRequestResponse,
    UnreadCountResponse,
)
from netbank.services import notification_service, service_request_service

router = APIRouter()
notifications_router = APIRouter()


@router.post(
    "",
    response_model=ServiceRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a service request",
)
async def submit_request(
    request: ServiceRequestCreateRequest,
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a request to the bank (e.g. "Debit Card Request").

    The description must be at least 10 characters and at most 5 requests
    may be awaiting a response at any time.
    """
    return await service_request_service.submit_request(
        db, user.id, request.request_type, request.description
    )


@router.get(
    "",
    response_model=list[ServiceRequestResponse],
    summary="List your service requests",
)
async def list_my_requests(
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    return await service_request_service.list_my_requests(db, user.id)


@notifications_router.get(
    "",
    response_model=list[NotificationResponse],
    summary="List your notifications",
)
async def list_notifications(
    include_read: bool = Query(False),
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    """Unread notifications, newest first; pass include_read=true for all."""
    return await notification_service.list_notifications(db, user.id, include_read)


@notifications_router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Count unread notifications",
)
async def unread_count(
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(
        unread_count=await notification_service.unread_count(db, user.id)
    )


@notifications_router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    return MarkAllReadResponse(
        marked=await notification_service.mark_all_read(db, user.id)
    )


@notifications_router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
)
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_member_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.mark_read(db, user.id, notification_id)
