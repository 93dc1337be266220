"""Authentication service layer."""
from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolhub.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)
from schoolhub.db.models.user import User, UserRole
from schoolhub.schemas import Token, UserCreate
from schoolhub.utils.exceptions import AuthenticationError, ValidationError


class AccountAlreadyExistsError(ValidationError):
    """Raised when the email or username is already registered."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when authentication credentials are invalid."""


class AuthService:
    """Encapsulates user registration and authentication logic."""

    def __init__(self, db: Session):
        self.db = db

    def register_user(self, payload: UserCreate) -> User:
        """Create a new user in the database."""

        return self._create(
            email=payload.email,
            username=payload.username,
            password=payload.password,
            role=payload.role,
        )

    def create_admin(self, email: str, username: str, password: str) -> User:
        """Create an administrator account; only reachable from operator tooling."""

        return self._create(email=email, username=username, password=password, role=UserRole.ADMIN.value)

    def authenticate_user(self, email: str, password: str) -> User:
        """Validate credentials and return the associated user."""

        user = self.db.scalar(select(User).where(User.email == email))
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError("Incorrect email or password")
        if not user.is_active:
            raise InvalidCredentialsError("Account is deactivated")
        user.mark_login()
        self.db.commit()
        return user

    def create_token(self, user: User) -> Token:
        """Generate an access token bound to the user's id and role."""

        access = create_access_token(str(user.id), role=user.role)
        return Token(access_token=access, role=user.role)

    def _create(self, *, email: str, username: str, password: str, role: str) -> User:
        existing_user = self.db.scalar(
            select(User).where(or_(User.email == email, User.username == username))
        )
        if existing_user:
            raise AccountAlreadyExistsError(self._duplicate_message(existing_user, email))

        user = User(
            email=email,
            username=username,
            hashed_password=get_password_hash(password),
            role=role,
        )

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise AccountAlreadyExistsError("This account is already registered.") from exc
        self.db.refresh(user)
        return user

    @staticmethod
    def _duplicate_message(existing: User, email: str) -> str:
        if existing.email == email:
            return "This email is already registered."
        return "This username is already taken."
