"""Pydantic schemas package."""

from schoolhub.schemas.auth import Token, TokenPayload
from schoolhub.schemas.message import MessageCreate, MessageRead
from schoolhub.schemas.notification import (
    NotificationListResponse,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationUpdateResponse,
    Pagination,
    UnreadCountResponse,
)
from schoolhub.schemas.realtime import (
    AuthenticatedPush,
    ClientEvent,
    HeartbeatPush,
    NotificationPush,
    ReceiveMessagePush,
    UserTypingPush,
    server_frame,
)
from schoolhub.schemas.user import UserBase, UserCreate, UserLogin, UserRead

__all__ = [
    "Token",
    "TokenPayload",
    "MessageCreate",
    "MessageRead",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationSendRequest",
    "NotificationSendResponse",
    "NotificationUpdateResponse",
    "Pagination",
    "UnreadCountResponse",
    "AuthenticatedPush",
    "ClientEvent",
    "HeartbeatPush",
    "NotificationPush",
    "ReceiveMessagePush",
    "UserTypingPush",
    "server_frame",
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserRead",
]
