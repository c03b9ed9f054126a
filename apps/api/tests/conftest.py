"""Pytest configuration and fixtures."""

import os

# Must be set before blocktrust_api.settings is first imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from blocktrust_api.auth.identity import Actor, issue_token
from blocktrust_api.db.base import Base
from blocktrust_api.db.seed import grant_role
from blocktrust_api.db.session import get_db
from blocktrust_api.models import Role
from blocktrust_api.utils.clock import utcnow

# Use test database URL from environment or default to SQLite in-memory
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")


@pytest.fixture(scope="function")
def db():
    """
    Create a test database session.

    Point TEST_DATABASE_URL at a real PostgreSQL instance to run the same
    tests against it.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL)

    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client(db: Session):
    """Test client whose requests share the test session."""
    from blocktrust_api.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_actor(db: Session, actor_id: str, *roles: Role) -> Actor:
    """Persist role grants and return the matching actor."""
    for role in roles:
        grant_role(db, actor_id, role)
    return Actor(id=actor_id, roles={role.value for role in roles})


def auth_headers(actor_id: str) -> dict:
    return {"Authorization": f"Bearer {issue_token(actor_id)}"}


@pytest.fixture
def admin(db: Session) -> Actor:
    return make_actor(db, "admin-1", Role.ADMIN)


@pytest.fixture
def voter(db: Session) -> Actor:
    return make_actor(db, "voter-1", Role.VOTER)


@pytest.fixture
def petitioner(db: Session) -> Actor:
    return make_actor(db, "petitioner-1", Role.PETITIONER)


@pytest.fixture
def now():
    return utcnow()


@pytest.fixture
def open_window(now):
    """A window that started a minute ago and ends in a day."""
    return now - timedelta(minutes=1), now + timedelta(days=1)
