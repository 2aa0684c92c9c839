"""
Security utilities: secret hashing and JWT session tokens.

1. SECRET HASHING (passlib CryptContext, Argon2 by default)
   - Login passwords and transaction PINs (T-PINs) are both one-way hashed
     with a salted, memory-hard KDF. Nothing is ever stored in plaintext.
   - The scheme list comes from settings.PASSWORD_SCHEMES, so the primitive
     can be swapped without touching callers: new secrets are hashed with
     the first scheme, older hashes keep verifying ("deprecated='auto'").
   - The external contract is verify(plaintext, stored_hash) -> bool.

2. JWT SESSION TOKENS
   - After login the identity receives a signed JWT with:
       "sub"  — user ID
       "role" — role snapshot at issuance (checked by the session-role guard)
       "sv"   — session version at issuance (bumped to discard sessions)
       "exp"  — expiry
   - Signed with SECRET_KEY using HS256 (HMAC-SHA256).
"""

from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from netbank.config import settings


# ---------------------------------------------------------------------------
# 1. Secret hashing
# ---------------------------------------------------------------------------

pwd_context = CryptContext(schemes=settings.PASSWORD_SCHEMES, deprecated="auto")


def hash_secret(plain_secret: str) -> str:
    """
    Hash a password or T-PIN.

    Returns:
        A self-describing hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_secret)


def verify_secret(plain_secret: str, stored_hash: str | None) -> bool:
    """
    Verify a plaintext password or T-PIN against a stored hash.

    An unset hash never verifies. Malformed hashes are treated as a
    mismatch rather than an error.
    """
    if not stored_hash:
        return False
    try:
        return pwd_context.verify(plain_secret, stored_hash)
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# 2. JWT session tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode (must include "sub", "role" and "sv").
        expires_delta: Optional custom expiration time. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
