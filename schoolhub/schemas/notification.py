"""Schemas for notification records and their REST surface."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

NotificationKind = Literal["info", "success", "warning", "danger"]
Audience = Literal["all", "students", "teachers", "parents"]


class NotificationRead(BaseModel):
    """Persisted notification as returned to its recipient."""

    id: uuid.UUID = Field(alias="_id")
    recipient_id: uuid.UUID
    sender_id: Optional[uuid.UUID] = None
    title: str
    message: str
    type: str
    read: bool
    link: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("metadata_", "metadata")
    )
    created_at: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class NotificationSendRequest(BaseModel):
    """Admin request to notify every active member of an audience."""

    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationKind = "info"
    recipients: Audience
    link: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[dict[str, Any]] = None


class NotificationSendResponse(BaseModel):
    success: bool = True
    message: str
    count: int
    delivered: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class NotificationListResponse(BaseModel):
    data: list[NotificationRead]
    pagination: Pagination
    unread_count: int = Field(alias="unreadCount")

    model_config = ConfigDict(populate_by_name=True)


class UnreadCountResponse(BaseModel):
    count: int


class NotificationUpdateResponse(BaseModel):
    success: bool = True
    message: str
    unread_count: int = Field(alias="unreadCount")

    model_config = ConfigDict(populate_by_name=True)
