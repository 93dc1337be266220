"""In-process presence registry mapping users to their live connections."""
from __future__ import annotations

import asyncio
import uuid
from typing import Dict, Set


class PresenceRegistry:
    """Track which connections are currently bound to which user.

    A connection belongs to at most one user. ``leave`` resolves the owner
    through a reverse index, so it never scans other users' rooms. Mutations
    are serialised by a single lock held only for the dictionary update.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._rooms: Dict[uuid.UUID, Set[str]] = {}
        self._owners: Dict[str, uuid.UUID] = {}

    async def join(self, user_id: uuid.UUID, connection_id: str) -> None:
        """Bind ``connection_id`` to ``user_id``; repeated calls are no-ops."""

        async with self._lock:
            previous = self._owners.get(connection_id)
            if previous == user_id:
                return
            if previous is not None:
                self._discard(previous, connection_id)
            self._owners[connection_id] = user_id
            self._rooms.setdefault(user_id, set()).add(connection_id)

    async def leave(self, connection_id: str) -> uuid.UUID | None:
        """Unbind a connection and return the user it belonged to, if any."""

        async with self._lock:
            user_id = self._owners.pop(connection_id, None)
            if user_id is not None:
                self._discard(user_id, connection_id)
            return user_id

    async def connections_for(self, user_id: uuid.UUID) -> frozenset[str]:
        async with self._lock:
            return frozenset(self._rooms.get(user_id, ()))

    async def owner_of(self, connection_id: str) -> uuid.UUID | None:
        async with self._lock:
            return self._owners.get(connection_id)

    async def online_users(self) -> list[uuid.UUID]:
        async with self._lock:
            return list(self._rooms.keys())

    def _discard(self, user_id: uuid.UUID, connection_id: str) -> None:
        room = self._rooms.get(user_id)
        if room is None:
            return
        room.discard(connection_id)
        if not room:
            del self._rooms[user_id]
