"""Pytest configuration and fixtures."""

import os
from unittest.mock import MagicMock

import pytest

# Use test database - PostgreSQL in Docker, SQLite locally. This has to be set
# before the app is imported so its engine points at the test database.
if os.getenv("DATABASE_URL", "").startswith("postgresql"):
    TEST_DATABASE_URL = os.environ["DATABASE_URL"].rsplit("/", 1)[0] + "/trippack_test"
else:
    TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["ENVIRONMENT"] = "test"

from fastapi.testclient import TestClient  # noqa: E402

import trippack.models  # noqa: E402, F401
from trippack.database import Base, SessionLocal, engine, get_db  # noqa: E402
from trippack.main import app  # noqa: E402
from trippack.services import realtime  # noqa: E402

TEST_PASSWORD = "testpass123"  # noqa: S105


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in TEST_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(TEST_DATABASE_URL):
            create_database(TEST_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = SessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def published():
    """Replace the Redis publisher with a mock and hand it to the test."""
    mock_redis = MagicMock()
    realtime._sync_redis = mock_redis
    yield mock_redis
    realtime._sync_redis = None


@pytest.fixture(scope="function")
def client_factory(db):
    """Build test clients that share the test database session.

    Each client keeps its own cookie jar, so each one can be signed in as a
    different user.
    """

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    clients = []

    def make_client() -> TestClient:
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield make_client

    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(client_factory):
    """An anonymous test client."""
    return client_factory()


def signup(test_client: TestClient, username: str, password: str = TEST_PASSWORD) -> TestClient:
    """Sign up on a client; the user's JSON is stored on ``client.user``."""
    response = test_client.post(
        "/api/auth/signup", json={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    test_client.user = response.json()["user"]
    return test_client


@pytest.fixture
def owner(client_factory):
    """A signed-in user who creates trips."""
    return signup(client_factory(), "olivia")


@pytest.fixture
def alice(client_factory):
    """A signed-in user who joins trips."""
    return signup(client_factory(), "alice")


@pytest.fixture
def bob(client_factory):
    """Another signed-in user who joins trips."""
    return signup(client_factory(), "bob")


def create_trip(test_client: TestClient, **fields) -> dict:
    """Create a trip and return its JSON."""
    payload = {"name": "Iceland Ring Road", **fields}
    response = test_client.post("/api/trip", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def join_trip(test_client: TestClient, trip_id: int):
    return test_client.post("/api/trip/join", json={"tripId": trip_id})


def member_id_for(owner_client: TestClient, trip_id: int, user_id: int) -> int:
    """Find a user's membership id from the owner's member list."""
    data = owner_client.get(f"/api/trip/{trip_id}/members").json()
    for member in data["members"] + data["pending"]:
        if member["user_id"] == user_id:
            return member["id"]
    raise AssertionError(f"user {user_id} has no membership on trip {trip_id}")


@pytest.fixture
def trip(owner):
    """A trip owned by ``owner`` that requires approval to join."""
    return create_trip(owner, auto_approve_members=False)


@pytest.fixture
def shared_trip(owner, alice):
    """A trip with ``alice`` as an approved member."""
    trip = create_trip(owner, auto_approve_members=True)
    assert join_trip(alice, trip["id"]).json()["status"] == "approved"
    return trip
