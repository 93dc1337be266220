"""Python client for the real-time channel."""

from schoolhub.client.inbox import NotificationInbox
from schoolhub.client.protocol import ClientProtocol, ClientState, ReconnectPolicy
from schoolhub.client.runner import RealtimeClient

__all__ = [
    "ClientProtocol",
    "ClientState",
    "NotificationInbox",
    "RealtimeClient",
    "ReconnectPolicy",
]
