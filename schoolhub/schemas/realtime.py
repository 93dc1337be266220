"""Schemas for real-time channel frames.

Every frame on the socket is a JSON object ``{"event": <name>, "data": <payload>}``.
Inbound frames are validated against :data:`ClientEvent`; outbound frames are
built with :func:`server_frame` from one of the ``*Push`` models below.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SendMessageData(_WireModel):
    receiver_id: uuid.UUID = Field(alias="receiverId")
    message: str = Field(min_length=1)


class TypingData(_WireModel):
    receiver_id: uuid.UUID = Field(alias="receiverId")
    is_typing: bool = Field(default=True, alias="isTyping")


class AuthenticateEvent(BaseModel):
    """Inbound request to bind the connection to the token's user."""

    event: Literal["authenticate"]
    data: str


class SendMessageEvent(BaseModel):
    """Inbound direct message, delivered only to the receiver's live connections."""

    event: Literal["send_message"]
    data: SendMessageData


class TypingEvent(BaseModel):
    """Inbound typing indicator."""

    event: Literal["typing"]
    data: TypingData


class HeartbeatEvent(BaseModel):
    """Inbound heartbeat event to keep the connection alive."""

    event: Literal["heartbeat"]
    data: Optional[Any] = None


ClientEvent = Annotated[
    AuthenticateEvent | SendMessageEvent | TypingEvent | HeartbeatEvent,
    Field(discriminator="event"),
]

client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


class AuthenticatedPush(_WireModel):
    success: bool
    error: Optional[str] = None


class ReceiveMessagePush(_WireModel):
    sender_id: uuid.UUID = Field(alias="senderId")
    message: str
    timestamp: datetime


class UserTypingPush(_WireModel):
    user_id: uuid.UUID = Field(alias="userId")
    is_typing: bool = Field(alias="isTyping")


class NotificationPush(_WireModel):
    """Public fields of a stored notification, as pushed to live sessions."""

    id: uuid.UUID = Field(alias="_id")
    title: str
    message: str
    type: str = "info"
    link: Optional[str] = None
    timestamp: datetime
    read: bool = False


class HeartbeatPush(_WireModel):
    server_time: datetime = Field(alias="serverTime")


def server_frame(event: str, payload: BaseModel) -> dict[str, Any]:
    """Serialise an outbound frame using the camelCase wire names."""

    return {
        "event": event,
        "data": payload.model_dump(mode="json", by_alias=True, exclude_none=True),
    }
