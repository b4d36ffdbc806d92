import os

# Point the app's own engine at a throwaway database before app.config is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from app.database import get_session  # noqa: E402
from app.db_seed import seed_time_slots  # noqa: E402
from app.main import app  # noqa: E402
from app.models.court import Court  # noqa: E402
from app.models.user import ROLE_ADMIN, User  # noqa: E402
from app.utils.auth import hash_password  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "secret123"

# ============================================================================
# CRITICAL: Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped and recreated per test, time slots seeded explicitly
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
    """Provide a test database session with the hourly slot grid seeded (08:00-22:00)"""
    # Import all models to ensure they're registered BEFORE create_all
    from app import models  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        seed_time_slots(session, opening_hour=8, closing_hour=22)
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    CRITICAL: Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def make_user(session: Session, username: str, role: str = "player") -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        full_name=username.title(),
        phone="555-0100",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_court(session: Session, name: str, price: str = "25.00", is_available: bool = True) -> Court:
    court = Court(name=name, description=f"{name} description", price_per_hour=Decimal(price), is_available=is_available)
    session.add(court)
    session.commit()
    session.refresh(court)
    return court


def login(client: TestClient, username: str, password: str = TEST_PASSWORD) -> None:
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, f"Login failed for {username}: {response.text}"


@pytest.fixture(name="player")
def player_fixture(session: Session) -> User:
    return make_user(session, "alice")


@pytest.fixture(name="admin_user")
def admin_user_fixture(session: Session) -> User:
    return make_user(session, "boss", role=ROLE_ADMIN)


@pytest.fixture(name="courts")
def courts_fixture(session: Session):
    """Two bookable courts and one closed court"""
    return [
        make_court(session, "Court A", "25.00"),
        make_court(session, "Court B", "40.00"),
        make_court(session, "Court C", "30.00", is_available=False),
    ]


@pytest.fixture(name="player_client")
def player_client_fixture(client: TestClient, player: User) -> TestClient:
    """The shared client, logged in as the player"""
    login(client, player.username)
    return client


@pytest.fixture(name="admin_client")
def admin_client_fixture(client: TestClient, admin_user: User):
    """A second client with its own cookie jar, logged in as the admin"""
    with TestClient(app) as admin_client:
        login(admin_client, admin_user.username)
        yield admin_client
