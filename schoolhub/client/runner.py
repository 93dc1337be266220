"""Async driver that runs :class:`ClientProtocol` over a real WebSocket."""
from __future__ import annotations

import asyncio
import inspect
import json
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional

import httpx
import websockets
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from websockets.exceptions import ConnectionClosed, WebSocketException

from schoolhub.client.protocol import (
    ClientProtocol,
    ClientState,
    CloseTransport,
    Dispatch,
    FetchInitialData,
    GiveUp,
    OpenTransport,
    ReconnectPolicy,
    ScheduleReconnect,
    SendFrame,
)

EventHandler = Callable[[str, Any], Optional[Awaitable[None]]]


def websocket_url(api_url: str) -> str:
    """Derive the channel URL from the REST base, e.g. ``http://host/api/v1``."""

    base = api_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}/ws"


class RealtimeClient:
    """Keep one authenticated channel open until logout or the retry budget runs out.

    Usage::

        client = RealtimeClient("http://localhost:8000/api/v1", token, on_event=handle)
        runner = asyncio.create_task(client.run())
        await client.send_message(receiver_id, "hi")
        await client.logout()
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        *,
        policy: ReconnectPolicy | None = None,
        on_event: EventHandler | None = None,
        http_client: httpx.AsyncClient | None = None,
        connect: Callable[..., Awaitable[Any]] | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.ws_url = websocket_url(self.api_url)
        self.protocol = ClientProtocol(token=token, policy=policy or ReconnectPolicy())
        self.on_event = on_event
        self._http = http_client or httpx.AsyncClient(base_url=self.api_url, timeout=10.0)
        self._owns_http = http_client is None
        self._connect = connect or websockets.connect
        self._ws: Any = None
        self._stopped = asyncio.Event()
        self._background: set[asyncio.Task] = set()

    @property
    def state(self) -> ClientState:
        return self.protocol.state

    @property
    def inbox(self):
        return self.protocol.inbox

    async def run(self) -> None:
        """Drive the protocol until it reaches a terminal state."""

        poller = asyncio.create_task(self._poll_unread_count())
        heartbeat = asyncio.create_task(self._send_heartbeats())
        try:
            pending = list(self.protocol.start())
            while pending:
                action = pending.pop(0)
                pending.extend(await self._execute(action))
        finally:
            self._stopped.set()
            for task in (poller, heartbeat):
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            for task in list(self._background):
                task.cancel()
            if self._owns_http:
                await self._http.aclose()

    async def send_message(self, receiver_id: Any, message: str) -> bool:
        return await self._emit("send_message", {"receiverId": str(receiver_id), "message": message})

    async def set_typing(self, receiver_id: Any, is_typing: bool) -> bool:
        return await self._emit("typing", {"receiverId": str(receiver_id), "isTyping": is_typing})

    async def logout(self) -> None:
        """Close the channel and stop all reconnection attempts."""

        actions = self.protocol.logout()
        self._stopped.set()
        for action in actions:
            await self._execute(action)

    async def _emit(self, event: str, data: Any) -> bool:
        actions = self.protocol.emit(event, data)
        if not actions:
            logger.warning("Channel not authenticated, cannot emit", event=event)
            return False
        for action in actions:
            await self._execute(action)
        return True

    async def _execute(self, action: Any) -> list:
        if isinstance(action, OpenTransport):
            return await self._open_and_read()
        if isinstance(action, SendFrame):
            await self._send(action)
            return []
        if isinstance(action, CloseTransport):
            if self._ws is not None:
                await self._ws.close()
            return []
        if isinstance(action, ScheduleReconnect):
            logger.info("Reconnecting", attempt=action.attempt, delay=action.delay)
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=action.delay)
            return self.protocol.reconnect_due()
        if isinstance(action, FetchInitialData):
            task = asyncio.create_task(self._fetch_initial_data())
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return []
        if isinstance(action, Dispatch):
            await self._dispatch(action.event, action.data)
            return []
        if isinstance(action, GiveUp):
            logger.error("Giving up on real-time channel", attempts=action.attempts)
            return []
        raise TypeError(f"Unknown client action: {action!r}")

    async def _open_and_read(self) -> list:
        try:
            self._ws = await self._connect(self.ws_url, ping_interval=self.protocol.policy.ping_interval)
        except (OSError, WebSocketException) as exc:
            logger.warning("Socket connection error", error=str(exc))
            return self.protocol.transport_closed()

        if self.protocol.is_terminal:
            await self._ws.close()
            self._ws = None
            return []

        logger.info("Connected to socket server", url=self.ws_url)
        for action in self.protocol.transport_opened():
            await self._execute(action)

        try:
            async for raw in self._ws:
                try:
                    frame = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring undecodable frame")
                    continue
                for action in self.protocol.frame_received(frame):
                    await self._execute(action)
        except ConnectionClosed as exc:
            logger.info("Disconnected from socket server", code=exc.rcvd.code if exc.rcvd else None)
        finally:
            self._ws = None
        return self.protocol.transport_closed()

    async def _send(self, action: SendFrame) -> None:
        if self._ws is None:
            return
        try:
            await self._ws.send(json.dumps(action.as_frame()))
        except ConnectionClosed:
            logger.debug("Send raced with disconnect", event=action.event)

    async def _dispatch(self, event: str, data: Any) -> None:
        if self.on_event is None:
            return
        result = self.on_event(event, data)
        if inspect.isawaitable(result):
            await result

    async def _fetch_initial_data(self) -> None:
        """Load the inbox once per authenticated session."""

        try:
            listing = await self._get_json("/notifications/", params={"limit": 50})
        except httpx.HTTPError as exc:
            logger.warning("Error fetching notifications", error=str(exc))
            return
        self.inbox.replace(listing.get("data", []), unread_count=listing.get("unreadCount"))

    async def _poll_unread_count(self) -> None:
        """Fallback path: refresh the unread count while the client is alive."""

        interval = self.protocol.policy.poll_interval
        while not self._stopped.is_set():
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=interval)
            if self._stopped.is_set():
                return
            try:
                payload = await self._get_json("/notifications/unread-count")
            except httpx.HTTPError as exc:
                logger.warning("Error fetching unread count", error=str(exc))
                continue
            self.inbox.set_unread_count(int(payload.get("count", 0)))

    async def _send_heartbeats(self) -> None:
        """Keep the server's idle timer from closing a quiet but healthy channel."""

        interval = self.protocol.policy.heartbeat_interval
        while not self._stopped.is_set():
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=interval)
            if self._stopped.is_set():
                return
            for action in self.protocol.emit("heartbeat"):
                await self._execute(action)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._http.get(
            path,
            params=params,
            headers={"Authorization": f"Bearer {self.protocol.token}"},
        )
        response.raise_for_status()
        return response.json()
