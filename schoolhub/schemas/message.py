"""Schemas for persisted direct messages."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    receiver_id: uuid.UUID = Field(alias="receiverId")
    message: str = Field(min_length=1, max_length=5000)

    model_config = ConfigDict(populate_by_name=True)


class MessageRead(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    message: str
    timestamp: datetime
    read: bool
    conversation_key: str

    model_config = ConfigDict(from_attributes=True)
