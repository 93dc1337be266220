"""Persisted direct message endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from schoolhub.api import deps
from schoolhub.db.models.user import User
from schoolhub.schemas import MessageCreate, MessageRead, UnreadCountResponse
from schoolhub.services.fanout import notification_push_from_record, trigger_fanout
from schoolhub.services.message_service import MessageService
from schoolhub.services.notification_service import NotificationService
from schoolhub.services.realtime import ConnectionManager

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/send", response_model=MessageRead)
async def send_message(
    payload: MessageCreate,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
    connection_manager: ConnectionManager = Depends(deps.get_connection_manager),
) -> MessageRead:
    """Store a chat message and notify the receiver.

    The live ``receive_message`` relay is the socket's job; this path only
    announces the stored notice through ``new_notification``.
    """

    def persist():
        message = MessageService(db).send(current_user.id, payload.receiver_id, payload.message)
        notice = NotificationService(db).notify_direct_message(current_user, message)
        return message, notice

    message, notice = await run_in_threadpool(persist)
    await trigger_fanout(
        connection_manager, [notice.recipient_id], notification_push_from_record(notice)
    )
    return MessageRead.model_validate(message)


@router.get("/conversation/{user_id}", response_model=list[MessageRead])
def get_conversation(
    user_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> list[MessageRead]:
    messages = MessageService(db).conversation(current_user.id, user_id)
    return [MessageRead.model_validate(message) for message in messages]


@router.put("/{message_id}/read", response_model=MessageRead)
def mark_as_read(
    message_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> MessageRead:
    return MessageRead.model_validate(MessageService(db).mark_as_read(current_user.id, message_id))


@router.get("/unread/count", response_model=UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=MessageService(db).unread_count(current_user.id))
