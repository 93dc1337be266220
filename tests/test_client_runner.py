"""Tests for the asyncio client driver using in-memory transports."""
from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from schoolhub.client.protocol import ClientState, ReconnectPolicy
from schoolhub.client.runner import RealtimeClient, websocket_url

NO_WAIT = ReconnectPolicy(initial_delay=0.0, max_delay=0.0, poll_interval=60.0)


class FakeSocket:
    """Answers ``authenticate`` like the server, then optionally hangs up."""

    def __init__(self, drop_after_auth: bool = False, accept_token: bool = True) -> None:
        self.drop_after_auth = drop_after_auth
        self.accept_token = accept_token
        self.sent: list[dict] = []
        self.closed = False
        self._outbox: asyncio.Queue = asyncio.Queue()

    async def send(self, raw: str) -> None:
        frame = json.loads(raw)
        self.sent.append(frame)
        if frame["event"] == "authenticate":
            ack = {"success": True} if self.accept_token else {"success": False, "error": "Invalid or expired token"}
            await self._outbox.put({"event": "authenticated", "data": ack})
            if self.drop_after_auth:
                await self._outbox.put(None)

    async def close(self) -> None:
        self.closed = True
        await self._outbox.put(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        item = await self._outbox.get()
        if item is None:
            raise StopAsyncIteration
        return json.dumps(item)


def listing_handler(calls: list[str]):
    record = {
        "_id": str(uuid.uuid4()),
        "recipient_id": str(uuid.uuid4()),
        "title": "Welcome back",
        "message": "Term starts Monday",
        "type": "info",
        "read": False,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(
            200,
            json={
                "data": [record],
                "pagination": {"page": 1, "limit": 50, "total": 1, "pages": 1},
                "unreadCount": 1,
            },
        )

    return handler


async def wait_until(predicate, attempts: int = 400) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.005)
    raise AssertionError("condition not reached")


def test_websocket_url_is_derived_from_api_url() -> None:
    assert websocket_url("http://localhost:8000/api/v1/") == "ws://localhost:8000/api/v1/ws"
    assert websocket_url("https://school.example.com/api/v1") == "wss://school.example.com/api/v1/ws"


@pytest.mark.asyncio
async def test_client_retries_connects_and_loads_inbox() -> None:
    attempts: list[int] = []
    sockets: list[FakeSocket] = []
    calls: list[str] = []

    async def connect(url: str, **kwargs) -> FakeSocket:
        attempts.append(1)
        if len(attempts) < 3:
            raise OSError("connection refused")
        socket = FakeSocket()
        sockets.append(socket)
        return socket

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(listing_handler(calls)),
        base_url="http://school.test/api/v1",
    ) as http:
        client = RealtimeClient(
            "http://school.test/api/v1", "tok", policy=NO_WAIT, http_client=http, connect=connect
        )
        runner = asyncio.create_task(client.run())

        await wait_until(lambda: client.state is ClientState.AUTHENTICATED and len(client.inbox) == 1)
        await client.logout()
        await asyncio.wait_for(runner, timeout=1)

    assert len(attempts) == 3
    (socket,) = sockets
    assert [frame["event"] for frame in socket.sent] == ["authenticate"]
    assert socket.closed
    assert calls == ["/api/v1/notifications/"]
    assert client.inbox.unread_count == 1
    assert client.state is ClientState.LOGGED_OUT


@pytest.mark.asyncio
async def test_client_reauthenticates_after_server_drop() -> None:
    sockets: list[FakeSocket] = []
    calls: list[str] = []

    async def connect(url: str, **kwargs) -> FakeSocket:
        socket = FakeSocket(drop_after_auth=not sockets)
        sockets.append(socket)
        return socket

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(listing_handler(calls)),
        base_url="http://school.test/api/v1",
    ) as http:
        client = RealtimeClient(
            "http://school.test/api/v1", "tok", policy=NO_WAIT, http_client=http, connect=connect
        )
        runner = asyncio.create_task(client.run())

        await wait_until(lambda: len(sockets) == 2 and client.state is ClientState.AUTHENTICATED)
        sent = await client.send_message(uuid.UUID(int=7), "hello")
        await client.logout()
        await asyncio.wait_for(runner, timeout=1)

    assert sent is True
    assert [frame["event"] for frame in sockets[0].sent] == ["authenticate"]
    assert [frame["event"] for frame in sockets[1].sent] == ["authenticate", "send_message"]
    assert sockets[1].sent[1]["data"] == {"receiverId": str(uuid.UUID(int=7)), "message": "hello"}


@pytest.mark.asyncio
async def test_client_gives_up_after_retry_budget() -> None:
    async def connect(url: str, **kwargs):
        raise OSError("server down")

    policy = ReconnectPolicy(max_attempts=2, initial_delay=0.0, max_delay=0.0, poll_interval=60.0)
    async with httpx.AsyncClient(transport=httpx.MockTransport(listing_handler([]))) as http:
        client = RealtimeClient("http://school.test/api/v1", "tok", policy=policy, http_client=http, connect=connect)
        await asyncio.wait_for(client.run(), timeout=1)

    assert client.state is ClientState.FAILED
    assert await client.send_message(uuid.uuid4(), "anyone?") is False


@pytest.mark.asyncio
async def test_logout_during_pending_connect_closes_the_new_socket() -> None:
    gate = asyncio.Event()
    sockets: list[FakeSocket] = []

    async def connect(url: str, **kwargs) -> FakeSocket:
        await gate.wait()
        socket = FakeSocket()
        sockets.append(socket)
        return socket

    async with httpx.AsyncClient(transport=httpx.MockTransport(listing_handler([]))) as http:
        client = RealtimeClient(
            "http://school.test/api/v1", "tok", policy=NO_WAIT, http_client=http, connect=connect
        )
        runner = asyncio.create_task(client.run())
        await wait_until(lambda: client.state is ClientState.CONNECTING)

        await client.logout()
        gate.set()
        await asyncio.wait_for(runner, timeout=1)

    (socket,) = sockets
    assert socket.closed
    assert socket.sent == []
    assert client.state is ClientState.LOGGED_OUT


@pytest.mark.asyncio
async def test_rejected_token_keeps_sending_heartbeats() -> None:
    sockets: list[FakeSocket] = []

    async def connect(url: str, **kwargs) -> FakeSocket:
        socket = FakeSocket(accept_token=False)
        sockets.append(socket)
        return socket

    policy = ReconnectPolicy(initial_delay=0.0, max_delay=0.0, poll_interval=60.0, heartbeat_interval=0.01)
    async with httpx.AsyncClient(transport=httpx.MockTransport(listing_handler([]))) as http:
        client = RealtimeClient("http://school.test/api/v1", "tok", policy=policy, http_client=http, connect=connect)
        runner = asyncio.create_task(client.run())

        await wait_until(
            lambda: sockets and [frame["event"] for frame in sockets[0].sent].count("heartbeat") >= 2
        )
        assert client.state is ClientState.CONNECTED
        assert client.protocol.last_auth_error == "Invalid or expired token"
        await client.logout()
        await asyncio.wait_for(runner, timeout=1)

    assert len(sockets) == 1
    assert [frame["event"] for frame in sockets[0].sent].count("authenticate") == 1
