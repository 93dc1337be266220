"""Notification database model."""
from datetime import datetime, timedelta, timezone
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON

from schoolhub.db.base import Base


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notification(Base):
    """A notice addressed to one recipient.

    Rows are written by the notification service before any real-time push
    and purged by a periodic task once ``expires_at`` has passed.
    """

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    recipient_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=NotificationType.INFO.value)
    read = Column(Boolean, nullable=False, default=False, index=True)
    link = Column(String(500))
    metadata_ = Column("metadata", JSON)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    expires_at = Column(DateTime(timezone=True), index=True)

    @classmethod
    def expiry_for(cls, created_at: datetime, retention_days: int) -> datetime:
        return created_at + timedelta(days=retention_days)
