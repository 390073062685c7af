import os

# Keep app startup off the real database file; tests use test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from matchboard.database import get_session  # noqa: E402
from matchboard.main import app  # noqa: E402
from tests.factories import CATEGORY_UUID  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after every test so rows never leak between tests
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    # Import all models to ensure they're registered BEFORE create_all
    from matchboard.models.bracket import EventBracket  # noqa: F401
    from matchboard.models.event import Event  # noqa: F401
    from matchboard.models.league import League  # noqa: F401
    from matchboard.models.match import Match  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Shared fixtures
# ============================================================================


@pytest.fixture
def event(session: Session):
    """Event whose category configuration covers a best-of-3 UUID category,
    a best-of-2 numeric category and a best-of-1 label category."""
    from matchboard.models.event import Event

    ev = Event(
        name="City Open",
        sport="badminton",
        categories=[
            {"id": CATEGORY_UUID, "name": "U-15", "gender": "Male", "match_type": "Singles", "setsPerMatch": 3},
            {"id": "42", "name": "Open League", "gender": "Mixed", "match_type": "Doubles", "setsPerMatch": "2"},
            {"id": "U-11", "name": "U-11", "setsPerMatch": None},
        ],
    )
    session.add(ev)
    session.commit()
    session.refresh(ev)
    return ev

