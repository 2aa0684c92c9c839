"""
ServiceRequest model — a customer request answered by an administrator.

Generic requests go pending -> responded. Debit card requests additionally
track a card lifecycle:

    (none) --approve--> approved --ETA passed / admin--> ready
           --reject---> rejected

`eta_date` is set when a card request is approved.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from netbank.database import Base


DEBIT_CARD_REQUEST = "Debit Card Request"


class ServiceRequestStatus(str, enum.Enum):
    PENDING = "pending"
    RESPONDED = "responded"


class CardStatus(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    READY = "ready"


class ServiceRequest(Base):
    __tablename__ = "service_requests"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    request_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)

    status: Mapped[ServiceRequestStatus] = mapped_column(
        Enum(ServiceRequestStatus),
        nullable=False,
        default=ServiceRequestStatus.PENDING,
    )

    admin_response: Mapped[str | None] = mapped_column(String(200), nullable=True)

    card_status: Mapped[CardStatus | None] = mapped_column(
        Enum(CardStatus),
        nullable=True,
    )
    eta_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
