"""Database models package."""
from schoolhub.db.models.user import User, UserRole
from schoolhub.db.models.notification import Notification, NotificationType
from schoolhub.db.models.message import Message, build_conversation_key

__all__ = [
    "User",
    "UserRole",
    "Notification",
    "NotificationType",
    "Message",
    "build_conversation_key",
]
