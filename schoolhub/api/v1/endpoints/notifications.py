"""Notification inbox endpoints and the admin broadcast trigger."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from schoolhub.api import deps
from schoolhub.config import settings
from schoolhub.db.models.user import User, UserRole
from schoolhub.schemas import (
    NotificationListResponse,
    NotificationRead,
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationUpdateResponse,
    UnreadCountResponse,
)
from schoolhub.services.fanout import fan_out_records
from schoolhub.services.notification_service import NotificationService
from schoolhub.services.realtime import ConnectionManager

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationListResponse)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=settings.NOTIFICATION_PAGE_SIZE_MAX),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> NotificationListResponse:
    service = NotificationService(db)
    items, pagination = service.list_for_user(
        current_user.id, page=page, limit=limit, unread_only=unread_only
    )
    return NotificationListResponse(
        data=[NotificationRead.model_validate(item) for item in items],
        pagination=pagination,
        unread_count=service.unread_count(current_user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=NotificationService(db).unread_count(current_user.id))


@router.put("/read-all", response_model=NotificationUpdateResponse)
def mark_all_as_read(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> NotificationUpdateResponse:
    unread = NotificationService(db).mark_all_as_read(current_user.id)
    return NotificationUpdateResponse(message="All notifications marked as read", unread_count=unread)


@router.put("/{notification_id}/read", response_model=NotificationUpdateResponse)
def mark_as_read(
    notification_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> NotificationUpdateResponse:
    unread = NotificationService(db).mark_as_read(current_user.id, notification_id)
    return NotificationUpdateResponse(message="Marked as read", unread_count=unread)


@router.delete("/{notification_id}", response_model=NotificationUpdateResponse)
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> NotificationUpdateResponse:
    unread = NotificationService(db).delete(current_user.id, notification_id)
    return NotificationUpdateResponse(message="Notification deleted", unread_count=unread)


@router.post("/send", response_model=NotificationSendResponse)
async def send_notification(
    payload: NotificationSendRequest,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.require_roles(UserRole.ADMIN)),
    connection_manager: ConnectionManager = Depends(deps.get_connection_manager),
) -> NotificationSendResponse:
    """Store a notification for every member of the audience, then push it live."""

    service = NotificationService(db)
    records = await run_in_threadpool(service.send_to_audience, current_user, payload)
    delivered = await fan_out_records(connection_manager, records)
    return NotificationSendResponse(
        message=f"Notification sent to {len(records)} users",
        count=len(records),
        delivered=delivered,
    )
