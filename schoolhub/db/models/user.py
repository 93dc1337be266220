"""User database model."""
from datetime import datetime, timezone
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID

from schoolhub.db.base import Base


class UserRole(str, enum.Enum):
    """Roles recognised by the access checks and notification audiences."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents an account holder of any role."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value, index=True)

    # Metadata
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    last_login = Column(DateTime(timezone=True))
    is_active = Column(Boolean, default=True)

    def mark_login(self, when: datetime | None = None) -> None:
        """Record the time of the latest successful login."""

        self.last_login = when or _utcnow()
