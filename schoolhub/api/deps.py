"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from schoolhub.config import settings
from schoolhub.core.security import InvalidTokenError, verify_token
from schoolhub.db.models.user import User, UserRole
from schoolhub.db.session import get_db
from schoolhub.services.realtime import ConnectionManager, build_default_connection_manager
from schoolhub.utils.exceptions import PermissionDeniedError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

_connection_manager_singleton: ConnectionManager | None = None


def get_current_user(
    token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated user from the Authorization header."""

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    try:
        identity = verify_token(token)
    except InvalidTokenError as exc:
        raise credentials_exception from exc

    user = db.get(User, identity.user_id)
    if not user or not user.is_active:
        raise credentials_exception
    return user


def require_roles(*roles: UserRole):
    """Build a dependency that admits only users holding one of ``roles``."""

    allowed = {role.value for role in roles}

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise PermissionDeniedError("You do not have permission to perform this action")
        return current_user

    return dependency


def get_connection_manager() -> ConnectionManager:
    """Return the process-wide connection manager."""

    global _connection_manager_singleton
    if _connection_manager_singleton is None:
        _connection_manager_singleton = build_default_connection_manager()
    return _connection_manager_singleton
