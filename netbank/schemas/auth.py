"""
Pydantic schemas for authentication endpoints (signup, login, logout).

These schemas define the request/response contracts for the auth API.
Pydantic validates incoming data automatically — if a required field is
missing or the wrong type, FastAPI returns a 422 error before our code
even runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field

from netbank.schemas.account import AccountResponse


class UserSignupRequest(BaseModel):
    """Request body for POST /auth/signup."""
    username: str = Field(min_length=3, max_length=256)
    email: EmailStr                                # Validates email format
    password: str = Field(min_length=8)            # Minimum 8 characters
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=20)
    address: str | None = Field(None, max_length=200)


class UserLoginRequest(BaseModel):
    """Request body for POST /auth/login and POST /admin/login."""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Response body for successful login — contains the JWT."""
    token: str
    token_type: str = "bearer"
    role: str | None = None
    # Set for the bootstrapped admin until its credentials are changed
    uses_default_credentials: bool = False


class SignupResponse(BaseModel):
    """Response body for successful signup — user info, opened accounts + JWT."""
    user_id: uuid.UUID
    username: str
    email: str
    role: str
    accounts: list[AccountResponse]
    token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str
