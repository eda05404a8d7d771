"""
Security Helpers
================

Password hashing (bcrypt) and bearer token issuing/verification (PyJWT).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
import jwt

from servicedesk.config import settings
from servicedesk.core import AuthenticationException


@dataclass(frozen=True)
class TokenPayload:
    """Claims carried by an access token."""
    user_id: UUID
    role: Optional[str]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def create_access_token(user_id: UUID, role: Optional[str]) -> str:
    """Create a signed JWT access token."""
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_expire_hours)
    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenPayload:
    """
    Decode and validate a JWT access token.

    Raises:
        AuthenticationException: token is malformed, expired or tampered with
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        return TokenPayload(user_id=UUID(payload["sub"]), role=payload.get("role"))
    except (jwt.PyJWTError, KeyError, ValueError) as e:
        raise AuthenticationException("Invalid token") from e
