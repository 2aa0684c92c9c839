"""
Pydantic schemas for User-related responses and admin identity management.

These schemas control what user data is exposed through the API.
Notice that hashed_password is NEVER included in any response schema —
this is a critical security boundary.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from netbank.models.transaction import TransactionStatus, TransactionType
from netbank.models.user import Role


class UserResponse(BaseModel):
    """Public representation of a User (never includes password hash)."""
    id: uuid.UUID
    username: str
    email: str
    role: Role | None
    is_active: bool
    is_locked: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class RoleUpdateRequest(BaseModel):
    """Request body for PATCH /admin/users/{user_id}/role. null revokes the role."""
    role: Role | None


class AdminCredentialsResponse(BaseModel):
    username: str
    uses_default_credentials: bool

    model_config = {"from_attributes": True}


class AdminCredentialsUpdateRequest(BaseModel):
    """Request body for PUT /admin/credentials."""
    current_username: str
    current_password: str
    new_username: str = Field(min_length=3, max_length=256)
    new_password: str = Field(min_length=8)


class ReportRow(BaseModel):
    type: TransactionType
    status: TransactionStatus
    count: int
    total_amount_cents: int


class TransactionReportResponse(BaseModel):
    start: datetime | None
    end: datetime | None
    rows: list[ReportRow]
    total_count: int
    total_amount_cents: int
