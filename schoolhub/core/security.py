"""Security utilities for password hashing and JWT handling."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt
from pydantic import ValidationError

from schoolhub.config import settings
from schoolhub.schemas.auth import TokenPayload


ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Raised when a JWT cannot be decoded or is invalid."""


@dataclass(frozen=True)
class SessionIdentity:
    """Identity recovered from a verified access token."""

    user_id: uuid.UUID
    role: str


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Validate a plaintext password against a hashed value."""

    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    """Hash a password using the configured hashing algorithm."""

    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def create_access_token(
    subject: str | Any,
    role: str,
    expires_minutes: int | None = None,
) -> str:
    """Create a signed JWT access token carrying the user's role."""

    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload: Dict[str, Any] = {
        "exp": expire,
        "sub": str(subject),
        "role": role,
        "type": "access",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode a JWT and return its payload, raising ``InvalidTokenError`` if invalid."""

    if not isinstance(token, str) or not token:
        raise InvalidTokenError("Token must be a non-empty string")
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError(str(exc)) from exc


def verify_token(token: str) -> SessionIdentity:
    """Verify an access token and return the identity it was issued for.

    Used by both the HTTP auth dependency and the real-time channel. Never
    touches the database; an expired, tampered or otherwise unusable token
    raises ``InvalidTokenError``.
    """

    payload = decode_token(token)
    if payload.get("type") != "access":
        raise InvalidTokenError("Token must be an access token")
    try:
        token_data = TokenPayload.model_validate(payload)
    except ValidationError as exc:
        raise InvalidTokenError("Token payload is incomplete") from exc
    return SessionIdentity(user_id=token_data.sub, role=token_data.role)
