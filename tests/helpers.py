"""Shared helpers for building authenticated requests in tests."""
from __future__ import annotations

from schoolhub.core.security import create_access_token
from schoolhub.db.models import User


def token_for(user: User) -> str:
    return create_access_token(str(user.id), role=user.role)


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user)}"}


def authenticate(websocket, user: User) -> dict:
    """Send ``authenticate`` over a test socket and return the ack frame."""

    websocket.send_json({"event": "authenticate", "data": token_for(user)})
    return websocket.receive_json()
