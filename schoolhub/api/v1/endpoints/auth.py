"""Authentication API endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolhub.api.deps import get_db
from schoolhub.schemas import Token, UserCreate, UserLogin, UserRead
from schoolhub.services.auth import AuthService


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserCreate, db: Session = Depends(get_db)) -> UserRead:
    """Register a new student, teacher or parent account."""

    service = AuthService(db)
    return service.register_user(payload)


@router.post("/login", response_model=Token)
def login(payload: UserLogin, db: Session = Depends(get_db)) -> Token:
    """Authenticate a user and return a signed access token."""

    service = AuthService(db)
    user = service.authenticate_user(payload.email, payload.password)
    return service.create_token(user)
