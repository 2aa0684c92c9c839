"""
Pydantic schemas for service requests and notifications.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from netbank.models.service_request import CardStatus, ServiceRequestStatus


class ServiceRequestCreateRequest(BaseModel):
    """Request body for POST /service-requests.

    Length rules live in the service so their limits stay configurable.
    """
    request_type: str = Field(max_length=50)
    description: str = Field(max_length=500)


class ServiceRequestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    request_type: str
    description: str
    status: ServiceRequestStatus
    admin_response: str | None
    card_status: CardStatus | None
    eta_date: datetime | None
    requested_at: datetime
    responded_at: datetime | None

    model_config = {"from_attributes": True}


class ServiceRequestRespondRequest(BaseModel):
    """Request body for POST /admin/service-requests/{id}/respond."""
    response: str = Field(min_length=1, max_length=200)
    # Required for "Debit Card Request", ignored for other types
    action: Literal["approve", "reject"] | None = None


class NotificationResponse(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    category: str
    related_entity_id: str | None
    related_entity_type: str | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    marked: int
