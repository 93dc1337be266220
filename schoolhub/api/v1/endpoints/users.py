"""User directory endpoints."""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from schoolhub.api import deps
from schoolhub.db.models.user import User, UserRole
from schoolhub.schemas import UserRead
from schoolhub.services.realtime import ConnectionManager
from schoolhub.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(deps.get_current_user)) -> User:
    """Return the authenticated user profile."""

    return current_user


@router.get("/online", response_model=list[str])
async def list_online_users(
    _: User = Depends(deps.get_current_user),
    connection_manager: ConnectionManager = Depends(deps.get_connection_manager),
) -> list[str]:
    """Return ids of users with a live real-time connection."""

    return await connection_manager.list_active_users()


@router.get("/", response_model=list[UserRead])
def list_users(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    role: Optional[UserRole] = Query(None),
    db: Session = Depends(deps.get_db),
    _: User = Depends(deps.get_current_user),
) -> list[User]:
    """Return active users, e.g. to pick chat contacts."""

    service = UserService(db)
    return service.list_users(limit=limit, offset=offset, role=role)


@router.get("/{user_id}", response_model=UserRead)
def read_user_by_id(
    user_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    _: User = Depends(deps.get_current_user),
) -> User:
    """Fetch another user's profile."""

    service = UserService(db)
    return service.get(user_id)
