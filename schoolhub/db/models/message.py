"""Direct message database model."""
from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, event
from sqlalchemy.dialects.postgresql import UUID

from schoolhub.db.base import Base


def build_conversation_key(first: uuid.UUID | str, second: uuid.UUID | str) -> str:
    """Return the thread key shared by both participants, whoever sends first."""

    return "_".join(sorted((str(first), str(second))))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """A persisted two-party chat message."""

    __tablename__ = "messages"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    receiver_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    read = Column(Boolean, nullable=False, default=False)
    conversation_key = Column(String(80), nullable=False, index=True)


@event.listens_for(Message, "before_insert")
def _assign_conversation_key(mapper, connection, target: Message) -> None:  # noqa: ARG001
    target.conversation_key = build_conversation_key(target.sender_id, target.receiver_id)
