"""Persistence of notification records.

Rows written here are what the real-time fan-out announces and what the
client polls as its fallback. Nothing in this module talks to sockets.
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from loguru import logger
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from schoolhub.config import settings
from schoolhub.db.models.message import Message
from schoolhub.db.models.notification import Notification
from schoolhub.db.models.user import User
from schoolhub.schemas.notification import NotificationSendRequest, Pagination
from schoolhub.services.users import UserService
from schoolhub.utils.exceptions import NotFoundError

MESSAGE_PREVIEW_LENGTH = 100


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification does not exist for the caller."""

    def __init__(self, message: str = "Notification not found") -> None:
        super().__init__(message)


class NotificationService:
    """Create, query and update notifications for their recipients."""

    def __init__(self, db: Session, retention_days: int | None = None):
        self.db = db
        self.retention_days = retention_days or settings.NOTIFICATION_RETENTION_DAYS

    def create_for_recipients(
        self,
        recipient_ids: Iterable[uuid.UUID],
        *,
        title: str,
        message: str,
        type: str = "info",
        sender_id: uuid.UUID | None = None,
        link: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> list[Notification]:
        """Insert one row per recipient and return them after commit."""

        created_at = datetime.now(timezone.utc)
        expires_at = Notification.expiry_for(created_at, self.retention_days)
        records = [
            Notification(
                id=uuid.uuid4(),
                recipient_id=recipient_id,
                sender_id=sender_id,
                title=title,
                message=message,
                type=type,
                read=False,
                link=link,
                metadata_=metadata,
                created_at=created_at,
                expires_at=expires_at,
            )
            for recipient_id in dict.fromkeys(recipient_ids)
        ]
        self.db.add_all(records)
        self.db.commit()
        logger.info("Notifications stored", count=len(records), title=title)
        return records

    def send_to_audience(self, sender: User, request: NotificationSendRequest) -> list[Notification]:
        """Store one notification for every active member of the audience."""

        recipient_ids = UserService(self.db).audience_ids(request.recipients)
        if not recipient_ids:
            raise NotFoundError("No users found for the selected recipient group")
        return self.create_for_recipients(
            recipient_ids,
            title=request.title,
            message=request.message,
            type=request.type,
            sender_id=sender.id,
            link=request.link,
            metadata=request.metadata,
        )

    def notify_direct_message(self, sender: User, message: Message) -> Notification:
        """Store the notice a receiver gets for a newly persisted chat message."""

        preview = message.message
        if len(preview) > MESSAGE_PREVIEW_LENGTH:
            preview = preview[: MESSAGE_PREVIEW_LENGTH - 3] + "..."
        (record,) = self.create_for_recipients(
            [message.receiver_id],
            title=f"New message from {sender.username}",
            message=preview,
            sender_id=sender.id,
            link="/chat",
            metadata={"messageId": str(message.id), "senderId": str(sender.id)},
        )
        return record

    def list_for_user(
        self,
        user_id: uuid.UUID,
        *,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> tuple[list[Notification], Pagination]:
        """Return one page of live notifications, newest first."""

        conditions = self._visible(user_id)
        if unread_only:
            conditions.append(Notification.read.is_(False))

        total = self.db.scalar(select(func.count()).select_from(Notification).where(*conditions)) or 0
        stmt = (
            select(Notification)
            .where(*conditions)
            .order_by(Notification.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list(self.db.scalars(stmt))
        pagination = Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
        return items, pagination

    def unread_count(self, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(*self._visible(user_id), Notification.read.is_(False))
        )
        return self.db.scalar(stmt) or 0

    def mark_as_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> int:
        """Mark one of the user's notifications read and return the new unread count."""

        record = self._get_owned(user_id, notification_id)
        record.read = True
        self.db.commit()
        return self.unread_count(user_id)

    def mark_all_as_read(self, user_id: uuid.UUID) -> int:
        self.db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        self.db.commit()
        return 0

    def delete(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> int:
        """Delete one of the user's notifications and return the new unread count."""

        record = self._get_owned(user_id, notification_id)
        self.db.delete(record)
        self.db.commit()
        return self.unread_count(user_id)

    def purge_expired(self, now: datetime | None = None) -> int:
        """Remove every notification whose retention window has passed."""

        cutoff = now or datetime.now(timezone.utc)
        result = self.db.execute(delete(Notification).where(Notification.expires_at <= cutoff))
        self.db.commit()
        return result.rowcount or 0

    def _get_owned(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        record = self.db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.recipient_id == user_id,
            )
        )
        if record is None:
            raise NotificationNotFoundError()
        return record

    @staticmethod
    def _visible(user_id: uuid.UUID) -> list:
        now = datetime.now(timezone.utc)
        return [
            Notification.recipient_id == user_id,
            or_(Notification.expires_at.is_(None), Notification.expires_at > now),
        ]
