"""
Pytest fixtures for the habit tracker tests
"""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test_habits.db"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["MONTHLY_ELIGIBLE_DAY"] = "1"

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app import crud, schemas
from app.database import Base, SessionLocal, engine, get_db
from app.main import app


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database session override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return "test-user-123"


@pytest.fixture
def today():
    """A fixed 'today' (a Sunday) for engine tests"""
    return date(2024, 3, 10)


@pytest.fixture
def make_habit(db_session, user_id):
    """Factory creating habits through the registry"""
    def _make_habit(name="Drink water", owner=None, **overrides):
        data = {"name": name, "frequency": "daily", "target_type": "count", "target_value": 1}
        data.update(overrides)
        return crud.create_habit(db_session, owner or user_id, schemas.HabitCreate(**data))
    return _make_habit


@pytest.fixture
def sample_habit():
    """Sample habit payload for API tests"""
    return {
        "name": "Drink water",
        "emoji": "💧",
        "color": "#06b6d4",
        "frequency": "daily",
        "targetType": "count",
        "targetValue": 8,
    }
