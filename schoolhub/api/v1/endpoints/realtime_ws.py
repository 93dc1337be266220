"""WebSocket endpoint for chat and notification delivery."""
from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, WebSocket
from loguru import logger

from schoolhub.api.deps import get_connection_manager
from schoolhub.config import settings
from schoolhub.services.channel import RealtimeChannel
from schoolhub.services.realtime import ConnectionManager

router = APIRouter(tags=["realtime"])

GOING_AWAY = 1001


@router.websocket("/ws")
async def realtime_stream(
    websocket: WebSocket,
    connection_manager: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """Accept a socket and feed its frames through a :class:`RealtimeChannel`.

    The socket starts unauthenticated; the client must send ``authenticate``
    before any message or typing event is relayed. A socket that stays silent
    longer than the idle timeout is closed so presence does not go stale.
    """

    connection_id = await connection_manager.connect(websocket)
    channel = RealtimeChannel(connection_id, connection_manager)

    try:
        while True:
            try:
                message = await asyncio.wait_for(
                    websocket.receive(), timeout=settings.WS_IDLE_TIMEOUT_SECONDS
                )
            except asyncio.TimeoutError:
                logger.info("Closing idle WebSocket", connection_id=connection_id)
                await websocket.close(code=GOING_AWAY)
                break

            if message["type"] == "websocket.disconnect":
                break
            frame = message.get("text")
            if frame is None:
                frame = message.get("bytes")
            await channel.handle(frame)
    finally:
        await channel.close()
