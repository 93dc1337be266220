"""Unit tests for token issuing and verification."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from schoolhub.config import settings
from schoolhub.core.security import (
    ALGORITHM,
    InvalidTokenError,
    SessionIdentity,
    create_access_token,
    get_password_hash,
    verify_password,
    verify_token,
)


def test_verify_token_returns_identity() -> None:
    user_id = uuid.uuid4()
    token = create_access_token(str(user_id), role="parent")

    identity = verify_token(token)

    assert identity == SessionIdentity(user_id=user_id, role="parent")


def test_expired_token_is_rejected() -> None:
    token = create_access_token(str(uuid.uuid4()), role="student", expires_minutes=-1)

    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_token_signed_with_other_secret_is_rejected() -> None:
    payload = {
        "sub": str(uuid.uuid4()),
        "role": "student",
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, "some-other-secret", algorithm=ALGORITHM)

    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_non_access_token_is_rejected() -> None:
    payload = {
        "sub": str(uuid.uuid4()),
        "role": "student",
        "type": "refresh",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)

    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_token_without_usable_subject_is_rejected() -> None:
    payload = {
        "sub": "not-a-uuid",
        "role": "student",
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)

    with pytest.raises(InvalidTokenError):
        verify_token(token)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", None, 42])
def test_malformed_tokens_are_rejected(token) -> None:
    with pytest.raises(InvalidTokenError):
        verify_token(token)


def test_password_hash_round_trip() -> None:
    hashed = get_password_hash("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)
