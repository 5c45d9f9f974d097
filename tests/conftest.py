"""
Shared pytest fixtures.

Uses a file-based SQLite database so no Postgres is required for tests.
Each test gets its own user id, so rows left behind by one test never leak
into another's streaks or badges.
"""
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from moodjournal.db.base import Base, get_db
from moodjournal.main import app
from moodjournal.services.badge_catalog import sync_badge_catalog

SQLITE_URL = "sqlite:///./test_moodjournal.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    # Seed the badge catalog (normally done by Alembic migration)
    db = TestingSessionLocal()
    try:
        sync_badge_catalog(db)
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def user_id() -> str:
    return f"user-{uuid.uuid4().hex[:12]}"

