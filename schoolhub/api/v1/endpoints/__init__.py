"""API endpoint modules for v1."""

from schoolhub.api.v1.endpoints import (
    auth,
    messages,
    notifications,
    realtime_ws,
    users,
)

__all__ = [
    "auth",
    "messages",
    "notifications",
    "realtime_ws",
    "users",
]
