"""Real-time connection management for the notification and chat channel."""
from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, Iterable, Protocol

from loguru import logger

from schoolhub.services.presence import PresenceRegistry


class SocketLike(Protocol):
    """The subset of ``starlette.websockets.WebSocket`` the manager relies on."""

    async def accept(self) -> None:  # pragma: no cover - interface definition
        ...

    async def send_json(self, data: Any) -> None:  # pragma: no cover - interface definition
        ...


class ConnectionManager:
    """Track live sockets and deliver frames to every connection of a user.

    Delivery is best effort: users without a live connection are skipped,
    and a socket that fails to accept a frame is logged without affecting
    the other targets.
    """

    def __init__(self, presence: PresenceRegistry | None = None) -> None:
        self.presence = presence or PresenceRegistry()
        self._lock = asyncio.Lock()
        self._sockets: Dict[str, SocketLike] = {}

    async def connect(self, websocket: SocketLike) -> str:
        """Accept a WebSocket and register it under a fresh connection id."""

        await websocket.accept()
        return await self.register(websocket)

    async def register(self, websocket: SocketLike) -> str:
        """Register an already accepted socket and return its connection id."""

        connection_id = uuid.uuid4().hex
        async with self._lock:
            self._sockets[connection_id] = websocket
        logger.info("WebSocket connected", connection_id=connection_id)
        return connection_id

    async def bind(self, connection_id: str, user_id: uuid.UUID) -> bool:
        """Add an authenticated connection to its user's presence room."""

        async with self._lock:
            if connection_id not in self._sockets:
                return False
        await self.presence.join(user_id, connection_id)
        logger.info(
            "WebSocket authenticated",
            connection_id=connection_id,
            user_id=str(user_id),
        )
        return True

    async def disconnect(self, connection_id: str) -> uuid.UUID | None:
        """Forget a socket and remove it from presence; safe to call twice."""

        async with self._lock:
            known = self._sockets.pop(connection_id, None) is not None
        user_id = await self.presence.leave(connection_id)
        if known:
            logger.info(
                "WebSocket disconnected",
                connection_id=connection_id,
                user_id=str(user_id) if user_id else None,
            )
        return user_id

    async def send_personal_message(self, connection_id: str, message: dict[str, Any]) -> bool:
        """Send a frame to one connection, returning whether it was written."""

        async with self._lock:
            connection = self._sockets.get(connection_id)
        if connection is None:
            return False
        try:
            await connection.send_json(message)
        except Exception as exc:
            logger.warning(
                "Failed to deliver frame",
                connection_id=connection_id,
                event=message.get("event"),
                error=str(exc),
            )
            return False
        return True

    async def send_to_user(self, user_id: uuid.UUID, message: dict[str, Any]) -> int:
        """Deliver a frame to every live connection of one user."""

        return await self.fan_out([user_id], message)

    async def fan_out(self, user_ids: Iterable[uuid.UUID], message: dict[str, Any]) -> int:
        """Deliver a frame to every live connection of every target user.

        Returns the number of connections the frame was written to. Targets
        with no live connection contribute nothing.
        """

        connection_ids: list[str] = []
        for user_id in dict.fromkeys(user_ids):
            connection_ids.extend(await self.presence.connections_for(user_id))
        if not connection_ids:
            return 0

        results = await asyncio.gather(
            *(self.send_personal_message(connection_id, message) for connection_id in connection_ids),
            return_exceptions=True,
        )
        return sum(1 for result in results if result is True)

    async def list_active_users(self) -> list[str]:
        """Return ids of users with at least one authenticated connection."""

        return [str(user_id) for user_id in await self.presence.online_users()]

    async def connection_count(self) -> int:
        async with self._lock:
            return len(self._sockets)


def build_default_connection_manager() -> ConnectionManager:
    """Factory used by API dependencies to create a connection manager."""

    return ConnectionManager()
