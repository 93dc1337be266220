"""Client-held notification list with duplicate suppression."""
from __future__ import annotations

import uuid
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from schoolhub.schemas.realtime import NotificationPush


class NotificationInbox:
    """Notifications known to the client, newest first.

    A pushed notification whose id is already held is discarded, so the same
    record arriving twice around a reconnect shows up once.
    """

    def __init__(self) -> None:
        self._items: list[NotificationPush] = []
        self._ids: set[uuid.UUID] = set()
        self._pushed: set[uuid.UUID] = set()
        self.unread_count = 0

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return notification_id in self._ids

    @property
    def items(self) -> list[NotificationPush]:
        return list(self._items)

    def add(self, data: Any) -> NotificationPush | None:
        """Insert a pushed notification; returns ``None`` for duplicates and junk."""

        try:
            item = NotificationPush.model_validate(data)
        except ValidationError:
            logger.warning("Ignoring malformed notification push")
            return None
        if item.id in self._ids:
            return None
        self._items.insert(0, item)
        self._ids.add(item.id)
        self._pushed.add(item.id)
        if not item.read:
            self.unread_count += 1
        return item

    def replace(self, records: Iterable[dict[str, Any]], unread_count: int | None = None) -> None:
        """Reset the list from a REST fetch (``NotificationRead`` payloads).

        Items pushed since the previous fetch that the page does not contain
        were stored after the query ran; they stay at the top of the list.
        """

        items: list[NotificationPush] = []
        for record in records:
            payload = dict(record)
            payload.setdefault("timestamp", payload.get("created_at"))
            try:
                items.append(NotificationPush.model_validate(payload))
            except ValidationError:
                logger.warning("Ignoring malformed notification record")
        fetched_ids = {item.id for item in items}
        late = [item for item in self._items if item.id in self._pushed and item.id not in fetched_ids]
        self._items = late + items
        self._ids = {item.id for item in self._items}
        self._pushed.clear()
        if unread_count is None:
            unread_count = sum(1 for item in items if not item.read)
        self.unread_count = unread_count + sum(1 for item in late if not item.read)

    def set_unread_count(self, count: int) -> None:
        self.unread_count = max(0, count)

    def mark_read(self, notification_id: uuid.UUID) -> None:
        for index, item in enumerate(self._items):
            if item.id == notification_id and not item.read:
                self._items[index] = item.model_copy(update={"read": True})
                self.unread_count = max(0, self.unread_count - 1)
                return
