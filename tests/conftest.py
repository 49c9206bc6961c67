"""Pytest fixtures and configuration for flowboard tests."""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from flowboard.database.database import Base
from flowboard.database.repository import TaskRepository
from flowboard.models.task import Task, TaskStatus, TaskPriority


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine shared by every session of one test."""
    from flowboard.database import models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test engine (what the store and identity provider use)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "owner_id": test_user_id,
        "text": "Test Task",
        "description": "",
        "status": TaskStatus.BACKLOG,
        "priority": TaskPriority.NORMAL,
        "tags": [],
        "due_date": None,
        "due_time": None,
        "parent_id": None,
        "order": 1000.0,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory for Task objects: make_task(text="x", order=2.0, ...)."""
    def _make(**overrides) -> Task:
        data = {**sample_task_base, "id": str(uuid.uuid4()), **overrides}
        return Task(**data)
    return _make


@pytest.fixture
def sample_task(make_task):
    """Create a sample Task object for testing."""
    return make_task()


@pytest.fixture
def registry(session_factory):
    """Controller registry backed by the test database."""
    from flowboard.api.app import ControllerRegistry
    return ControllerRegistry(session_factory)


@pytest.fixture
def test_client(session_factory, registry):
    """Create a FastAPI test client with overridden database and registry dependencies."""
    from flowboard.api.app import app, get_registry
    from flowboard.database.database import get_db

    # Override the get_db dependency to use the test database
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry

    with TestClient(app) as client:
        yield client
        client.portal.call(registry.close)

    # Clean up dependency overrides
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_client):
    """Sign up a fresh account and return bearer headers for it."""
    response = test_client.post(
        "/auth/signup",
        json={"email": "jane@example.com", "password": "secret123", "display_name": "Jane"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
