"""Pytest fixtures for API and real-time tests."""

import os
import uuid
from collections.abc import Callable, Generator

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from schoolhub.api import deps
from schoolhub.db.base import Base
from schoolhub.db.models import Message, Notification, User
from schoolhub.main import create_app
from schoolhub.services.realtime import ConnectionManager

TABLES = [User.__table__, Notification.__table__, Message.__table__]


@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(TABLES):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture()
def connection_manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture()
def client(db_session: Session, connection_manager: ConnectionManager) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_connection_manager] = lambda: connection_manager
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Insert a user directly; the password hash is a placeholder."""

    def factory(username: str | None = None, role: str = "student", is_active: bool = True) -> User:
        name = username or f"user-{uuid.uuid4().hex[:8]}"
        user = User(
            email=f"{name}@school.example.com",
            username=name,
            hashed_password="not-a-real-hash",
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory
