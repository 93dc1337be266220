"""Client-side connection protocol for the real-time channel.

:class:`ClientProtocol` holds no sockets and never sleeps. Each input
(transport opened, frame received, transport closed, logout, ...) moves the
state machine and returns the actions a driver has to carry out, which keeps
the reconnect rules testable without a network.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional

from schoolhub.client.inbox import NotificationInbox


class ClientState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    RECONNECTING = "reconnecting"
    FAILED = "failed"
    LOGGED_OUT = "logged_out"


@dataclass(frozen=True)
class ReconnectPolicy:
    """Retry bounds for re-establishing a dropped connection."""

    max_attempts: int = 20
    initial_delay: float = 1.0
    max_delay: float = 5.0
    poll_interval: float = 30.0
    ping_interval: float = 20.0
    heartbeat_interval: float = 25.0

    def delay_for(self, attempt: int) -> float:
        """Return the wait before reconnect ``attempt`` (1-based)."""

        delay = self.initial_delay * (2 ** max(attempt - 1, 0))
        return min(delay, self.max_delay)


@dataclass(frozen=True)
class OpenTransport:
    pass


@dataclass(frozen=True)
class CloseTransport:
    pass


@dataclass(frozen=True)
class SendFrame:
    event: str
    data: Any = None

    def as_frame(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}


@dataclass(frozen=True)
class ScheduleReconnect:
    delay: float
    attempt: int


@dataclass(frozen=True)
class FetchInitialData:
    pass


@dataclass(frozen=True)
class Dispatch:
    """Hand an accepted server event to the application."""

    event: str
    data: Any = None


@dataclass(frozen=True)
class GiveUp:
    attempts: int


_TERMINAL = frozenset({ClientState.LOGGED_OUT, ClientState.FAILED})
_RELAYED_EVENTS = frozenset({"receive_message", "user_typing", "heartbeat"})


@dataclass
class ClientProtocol:
    token: str
    policy: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    inbox: NotificationInbox = field(default_factory=NotificationInbox)
    state: ClientState = ClientState.DISCONNECTED
    attempt: int = 0
    last_auth_error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL

    def start(self) -> list:
        if self.state is not ClientState.DISCONNECTED:
            return []
        self.state = ClientState.CONNECTING
        return [OpenTransport()]

    def transport_opened(self) -> list:
        """A new transport is up; authentication never carries over from a previous one."""

        if self.state is not ClientState.CONNECTING:
            return []
        self.state = ClientState.CONNECTED
        return [SendFrame("authenticate", self.token)]

    def transport_closed(self) -> list:
        """The transport dropped or could not be opened."""

        if self.is_terminal or self.state is ClientState.RECONNECTING:
            return []
        self.attempt += 1
        if self.attempt > self.policy.max_attempts:
            self.state = ClientState.FAILED
            return [GiveUp(attempts=self.attempt - 1)]
        self.state = ClientState.RECONNECTING
        return [ScheduleReconnect(delay=self.policy.delay_for(self.attempt), attempt=self.attempt)]

    def reconnect_due(self) -> list:
        if self.state is not ClientState.RECONNECTING:
            return []
        self.state = ClientState.CONNECTING
        return [OpenTransport()]

    def frame_received(self, frame: Any) -> list:
        if self.state not in (ClientState.CONNECTED, ClientState.AUTHENTICATED):
            return []
        if not isinstance(frame, dict):
            return []
        event = frame.get("event")
        data = frame.get("data")

        if event == "authenticated":
            return self._on_authenticated(data)
        if self.state is not ClientState.AUTHENTICATED:
            return []

        if event == "new_notification":
            item = self.inbox.add(data)
            return [Dispatch(event, item)] if item is not None else []
        if event in _RELAYED_EVENTS:
            return [Dispatch(event, data)]
        return []

    def emit(self, event: str, data: Any = None) -> list:
        """Queue an outbound event; only an authenticated session may send.

        ``heartbeat`` is also allowed on an open but unauthenticated transport so
        the server keeps it alive while the caller obtains a fresh token.
        """

        if self.state is ClientState.CONNECTED and event == "heartbeat":
            return [SendFrame(event, data)]
        if self.state is not ClientState.AUTHENTICATED:
            return []
        return [SendFrame(event, data)]

    def reauthenticate(self, token: str) -> list:
        """Retry authentication on the current transport with a fresh token."""

        if self.is_terminal:
            return []
        self.token = token
        if self.state is ClientState.CONNECTED:
            return [SendFrame("authenticate", token)]
        return []

    def logout(self) -> list:
        """Tear down for good; every later input is ignored."""

        if self.state is ClientState.LOGGED_OUT:
            return []
        transport_open = self.state in (
            ClientState.CONNECTING,
            ClientState.CONNECTED,
            ClientState.AUTHENTICATED,
        )
        self.state = ClientState.LOGGED_OUT
        return [CloseTransport()] if transport_open else []

    def _on_authenticated(self, data: Any) -> list:
        success = isinstance(data, dict) and data.get("success") is True
        if not success:
            self.last_auth_error = data.get("error") if isinstance(data, dict) else None
            return []
        if self.state is not ClientState.CONNECTED:
            return []
        self.state = ClientState.AUTHENTICATED
        self.attempt = 0
        self.last_auth_error = None
        return [FetchInitialData()]
