"""
Pytest configuration and fixtures

Every test runs against a fresh SQLite file: tables are dropped and
recreated around each test, so nothing leaks between tests.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

# Settings and the engine are built at import time, so point them at a
# throwaway database before anything from revision_hub is imported.
_DB_DIR = tempfile.mkdtemp(prefix="revision_hub_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["ALLOW_GUEST"] = "true"
os.environ["SCHEDULE_TIMEZONE"] = "UTC"

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from revision_hub.db import Base, SessionLocal, engine, get_db
from revision_hub.main import app
from revision_hub.routers.topics import get_store
from revision_hub.store import TopicStore


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(db_session, clock):
    return TopicStore(db_session, clock=clock)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def frozen_api(clock):
    """Make the API's topic store use the test clock."""
    def _store(db: Session = Depends(get_db)) -> TopicStore:
        return TopicStore(db, clock=clock)

    app.dependency_overrides[get_store] = _store
    return clock


def register(client, email="learner@example.com", password="secret123", name="Learner"):
    r = client.post("/auth/register", json={"email": email, "password": password, "name": name})
    assert r.status_code == 201, r.text
    return r.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    return bearer(register(client)["access_token"])


@pytest.fixture
def other_headers(client):
    return bearer(register(client, email="someone@example.com", name="Someone")["access_token"])
