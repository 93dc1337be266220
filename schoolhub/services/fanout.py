"""Push freshly stored notifications to their recipients' live sessions."""
from __future__ import annotations

import uuid
from typing import Iterable

from loguru import logger

from schoolhub.db.models.notification import Notification
from schoolhub.schemas.realtime import NotificationPush, server_frame
from schoolhub.services.realtime import ConnectionManager


def notification_push_from_record(record: Notification) -> NotificationPush:
    return NotificationPush(
        id=record.id,
        title=record.title,
        message=record.message,
        type=record.type,
        link=record.link,
        timestamp=record.created_at,
        read=bool(record.read),
    )


async def trigger_fanout(
    manager: ConnectionManager,
    target_user_ids: Iterable[uuid.UUID],
    payload: NotificationPush,
) -> int:
    """Announce one notification to every live connection of the targets.

    Must only be called once the notification has been persisted. Offline
    targets receive nothing here and pick the record up on their next fetch.
    """

    targets = list(dict.fromkeys(target_user_ids))
    delivered = await manager.fan_out(targets, server_frame("new_notification", payload))
    logger.debug(
        "Notification fan-out complete",
        notification_id=str(payload.id),
        targets=len(targets),
        delivered=delivered,
    )
    return delivered


async def fan_out_records(manager: ConnectionManager, records: Iterable[Notification]) -> int:
    """Fan out a batch of per-recipient rows, one push per recipient."""

    delivered = 0
    for record in records:
        delivered += await trigger_fanout(
            manager, [record.recipient_id], notification_push_from_record(record)
        )
    logger.info("Notification batch announced", delivered=delivered)
    return delivered
