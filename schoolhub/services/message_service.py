"""Persistence of direct messages."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from schoolhub.db.models.message import Message, build_conversation_key
from schoolhub.services.users import UserService
from schoolhub.utils.exceptions import NotFoundError, ValidationError


class MessageNotFoundError(NotFoundError):
    """Raised when a message does not exist for the caller."""

    def __init__(self, message: str = "Message not found") -> None:
        super().__init__(message)


class MessageService:
    """Store chat messages and expose two-party threads."""

    def __init__(self, db: Session):
        self.db = db

    def send(self, sender_id: uuid.UUID, receiver_id: uuid.UUID, body: str) -> Message:
        if sender_id == receiver_id:
            raise ValidationError("Cannot send a message to yourself")
        UserService(self.db).get(receiver_id)

        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            message=body.strip(),
            timestamp=datetime.now(timezone.utc),
            conversation_key=build_conversation_key(sender_id, receiver_id),
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def conversation(self, user_id: uuid.UUID, other_id: uuid.UUID) -> list[Message]:
        """Return the thread between two users, oldest first."""

        stmt = (
            select(Message)
            .where(Message.conversation_key == build_conversation_key(user_id, other_id))
            .order_by(Message.timestamp.asc())
        )
        return list(self.db.scalars(stmt))

    def mark_as_read(self, user_id: uuid.UUID, message_id: uuid.UUID) -> Message:
        """Mark a received message read; senders cannot mark their own messages."""

        message = self.db.scalar(
            select(Message).where(Message.id == message_id, Message.receiver_id == user_id)
        )
        if message is None:
            raise MessageNotFoundError()
        message.read = True
        self.db.commit()
        return message

    def unread_count(self, user_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Message)
            .where(Message.receiver_id == user_id, Message.read.is_(False))
        )
        return self.db.scalar(stmt) or 0
