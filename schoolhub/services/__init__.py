"""Service layer package."""

from schoolhub.services.auth import AuthService
from schoolhub.services.message_service import MessageService
from schoolhub.services.notification_service import NotificationService
from schoolhub.services.presence import PresenceRegistry
from schoolhub.services.realtime import ConnectionManager
from schoolhub.services.users import UserService

__all__ = [
    "AuthService",
    "ConnectionManager",
    "MessageService",
    "NotificationService",
    "PresenceRegistry",
    "UserService",
]
