"""Per-connection state machine for the real-time channel."""
from __future__ import annotations

import enum
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from loguru import logger
from pydantic import BaseModel, ValidationError

from schoolhub.core.security import InvalidTokenError, SessionIdentity, verify_token
from schoolhub.schemas.realtime import (
    AuthenticatedPush,
    AuthenticateEvent,
    HeartbeatEvent,
    HeartbeatPush,
    ReceiveMessagePush,
    SendMessageData,
    SendMessageEvent,
    TypingData,
    TypingEvent,
    UserTypingPush,
    client_event_adapter,
    server_frame,
)
from schoolhub.services.realtime import ConnectionManager


class ChannelState(str, enum.Enum):
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    DISCONNECTED = "disconnected"


class RealtimeChannel:
    """Drive one socket through connected -> authenticated -> disconnected.

    ``handle`` takes a raw inbound frame (text, bytes or an already decoded
    mapping) and applies it. Malformed frames are logged and dropped, and
    events that need an identity are ignored until ``authenticate`` succeeds.
    Once ``close`` has run the channel ignores everything.
    """

    def __init__(
        self,
        connection_id: str,
        manager: ConnectionManager,
        verifier: Callable[[str], SessionIdentity] = verify_token,
    ) -> None:
        self.connection_id = connection_id
        self.manager = manager
        self._verify = verifier
        self.state = ChannelState.CONNECTED
        self.identity: SessionIdentity | None = None

    @property
    def user_id(self) -> uuid.UUID | None:
        return self.identity.user_id if self.identity else None

    async def handle(self, frame: Any) -> None:
        if self.state is ChannelState.DISCONNECTED:
            return

        if isinstance(frame, (str, bytes, bytearray)):
            try:
                frame = json.loads(frame)
            except ValueError:
                logger.warning("Dropping undecodable frame", connection_id=self.connection_id)
                return

        try:
            event = client_event_adapter.validate_python(frame)
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed frame",
                connection_id=self.connection_id,
                errors=exc.error_count(),
            )
            return

        if isinstance(event, AuthenticateEvent):
            await self._authenticate(event.data)
            return
        if isinstance(event, HeartbeatEvent):
            await self._reply("heartbeat", HeartbeatPush(server_time=datetime.now(timezone.utc)))
            return

        if self.state is not ChannelState.AUTHENTICATED:
            logger.debug(
                "Ignoring event from unauthenticated connection",
                connection_id=self.connection_id,
                event=event.event,
            )
            return

        if isinstance(event, SendMessageEvent):
            await self._relay_message(event.data)
        elif isinstance(event, TypingEvent):
            await self._relay_typing(event.data)

    async def close(self) -> None:
        """Leave presence and enter the terminal state."""

        if self.state is ChannelState.DISCONNECTED:
            return
        self.state = ChannelState.DISCONNECTED
        await self.manager.disconnect(self.connection_id)

    async def _authenticate(self, token: str) -> None:
        try:
            identity = self._verify(token)
        except InvalidTokenError as exc:
            logger.info(
                "Socket authentication failed",
                connection_id=self.connection_id,
                reason=str(exc),
            )
            await self._reply(
                "authenticated",
                AuthenticatedPush(success=False, error="Invalid or expired token"),
            )
            return

        if not await self.manager.bind(self.connection_id, identity.user_id):
            return
        self.identity = identity
        self.state = ChannelState.AUTHENTICATED
        await self._reply("authenticated", AuthenticatedPush(success=True))

    async def _relay_message(self, data: SendMessageData) -> None:
        push = ReceiveMessagePush(
            sender_id=self.user_id,
            message=data.message,
            timestamp=datetime.now(timezone.utc),
        )
        delivered = await self.manager.send_to_user(
            data.receiver_id, server_frame("receive_message", push)
        )
        if not delivered:
            logger.debug(
                "Receiver offline, message not relayed",
                connection_id=self.connection_id,
                receiver_id=str(data.receiver_id),
            )

    async def _relay_typing(self, data: TypingData) -> None:
        push = UserTypingPush(user_id=self.user_id, is_typing=data.is_typing)
        await self.manager.send_to_user(data.receiver_id, server_frame("user_typing", push))

    async def _reply(self, event: str, payload: BaseModel) -> None:
        await self.manager.send_personal_message(self.connection_id, server_frame(event, payload))
