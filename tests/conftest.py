"""Pytest configuration and fixtures."""

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resource_hub.api.dependencies import get_asset_store, get_rate_limiter
from resource_hub.database import Base, get_db
from resource_hub.main import app
from resource_hub.models.enums import UserRole
from resource_hub.services.asset_store import AssetStore
from resource_hub.services.auth import create_access_token, create_user
from resource_hub.services.rate_limit import InMemoryRateLimitBackend, RateLimiter


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/resource_hub", "/resource_hub_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ZIP_BYTES = b"PK\x03\x04" + b"\x00" * 64


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        from sqlalchemy_utils import create_database, database_exists

        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(autouse=True)
def mock_verification_email():
    """Keep verification emails off the Celery broker."""
    with patch("resource_hub.tasks.verification.send_verification_email.delay") as mock_delay:
        yield mock_delay


@pytest.fixture
def asset_store(tmp_path):
    """Asset store rooted in a per-test temporary directory."""
    return AssetStore(tmp_path / "public")


@pytest.fixture
def rate_limiter():
    """A fresh upload limiter with the default allowance."""
    return RateLimiter(InMemoryRateLimitBackend(), limit=5, window_seconds=300)


@pytest.fixture(scope="function")
def client(db, asset_store, rate_limiter):
    """Create a test client with database, storage and limiter overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_asset_store] = lambda: asset_store
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory for users created directly in the database."""
    counter = {"n": 0}

    def _make_user(
        username: str | None = None,
        role: UserRole = UserRole.USER,
        email_verified: bool = True,
        is_banned: bool = False,
    ):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        user = create_user(
            db,
            username,
            f"{username}@example.com",
            "testpass123",
            role=role,
            email_verified=email_verified,
        )
        if is_banned:
            user.is_banned = True
            db.commit()
        return user

    return _make_user


def _headers_for(user) -> AuthHeaders:
    token = create_access_token(user.id, user.email, user.role)
    return AuthHeaders({"Authorization": f"Bearer {token}"}, user_id=user.id, email=user.email)


@pytest.fixture
def user(make_user):
    return make_user("alice")


@pytest.fixture
def other_user(make_user):
    return make_user("bob")


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(user):
    """Auth headers for a verified regular user."""
    return _headers_for(user)


@pytest.fixture
def other_headers(other_user):
    return _headers_for(other_user)


@pytest.fixture
def admin_headers(admin):
    return _headers_for(admin)


def _resource_form(**overrides) -> dict:
    """Form fields for a valid new resource."""
    form = {
        "title": "Survival Economy Pack",
        "description": "Shop prices and rewards tuned for survival servers.",
        "plugin_type": "EssentialsX",
        "category": "Economy",
        "content": "# Economy\n\nDrop into plugins/Essentials.",
        "version": "1.0.0",
        "changelog": "",
    }
    form.update(overrides)
    return form


@pytest.fixture
def create_resource(client):
    """Upload a resource through the API and return the response JSON."""

    def _create(headers, **overrides):
        response = client.post(
            "/api/v1/resources",
            headers=headers,
            data=_resource_form(**overrides),
            files={"zip": ("config.zip", ZIP_BYTES, "application/zip")},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def headers_for():
    """Build bearer headers for any user."""
    return _headers_for
