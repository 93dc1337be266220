"""Service layer for user operations."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.db.models.user import User, UserRole
from schoolhub.utils.exceptions import NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when a user lookup fails."""


AUDIENCE_ROLES: dict[str, UserRole | None] = {
    "all": None,
    "students": UserRole.STUDENT,
    "teachers": UserRole.TEACHER,
    "parents": UserRole.PARENT,
}


class UserService:
    """Encapsulates reusable user-related data access operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> User:
        """Return a user by identifier or raise ``UserNotFoundError``."""

        user = self.db.get(User, user_id)
        if not user:
            raise UserNotFoundError("User not found")
        return user

    def list_users(
        self, limit: int = 50, offset: int = 0, role: UserRole | None = None
    ) -> list[User]:
        """Return active users ordered by username, optionally for one role."""

        stmt = select(User).where(User.is_active.is_(True))
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        stmt = stmt.order_by(User.username).offset(offset).limit(limit)
        return list(self.db.scalars(stmt))

    def audience_ids(self, audience: str) -> list[uuid.UUID]:
        """Resolve a notification audience name to active user ids."""

        if audience not in AUDIENCE_ROLES:
            raise ValueError(f"Unknown audience: {audience}")
        stmt = select(User.id).where(User.is_active.is_(True))
        role = AUDIENCE_ROLES[audience]
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        return list(self.db.scalars(stmt))
