"""
SwapCycle Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test that touches the store gets its own SQLite file under
       pytest's tmp_path, with tables created from the ORM metadata. Nothing is
       shared between tests, so they can run in any order.

Fixture Hierarchy (all function-scoped):
    settings ──▶ database ──▶ db_session ──▶ identity/listing/offer services
                     │
                     └──▶ app ──▶ test_client
    mock_db_session: AsyncMock session for failure injection
    register_user:   signs a user up through IdentityService, returns Identity
    auth_headers:    signs a user up over HTTP, returns Authorization headers
"""

import os
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Before any swapcycle import: the module-level app must never see a real
# deployment's environment
os.environ["APP_ENV"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("JWT_SECRET", None)

from swapcycle.config import Settings  # noqa: E402
from swapcycle.database import Database  # noqa: E402
from swapcycle.main import create_app  # noqa: E402
from swapcycle.schemas.auth import Identity  # noqa: E402
from swapcycle.services.identity_service import IdentityService  # noqa: E402
from swapcycle.services.listing_service import ListingService  # noqa: E402
from swapcycle.services.offer_service import OfferService  # noqa: E402

TEST_SECRET = "test-secret"
TEST_PASSWORD = "pw123456"


# ══════════════════════════════════════════════════════════════════════════
# Store Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings(tmp_path) -> Settings:
    """
    Settings for an isolated test run.

    bcrypt_rounds=4 is the minimum cost bcrypt accepts; it keeps each
    signup/login in the low milliseconds.
    """
    return Settings(
        _env_file=None,
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'swapcycle-test.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    db = Database.from_settings(settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """
    A bare session; nothing is committed.

    Services only flush, so everything a test writes is visible through this
    same session and discarded when it closes.
    """
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError(...)
        with pytest.raises(InternalError):
            await ListingService(mock_db_session).list_listings()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def identity_service(db_session, settings) -> IdentityService:
    return IdentityService(db_session, settings)


@pytest.fixture
def listing_service(db_session) -> ListingService:
    return ListingService(db_session)


@pytest.fixture
def offer_service(db_session) -> OfferService:
    return OfferService(db_session)


@pytest.fixture
def register_user(identity_service):
    """
    Factory: register an account and return its Identity.

    Usage:
        alice = await register_user("a@example.com")
    """
    async def _register(email: str, password: str = TEST_PASSWORD, name: str | None = None) -> Identity:
        auth = await identity_service.register(email, password, name)
        return Identity(id=auth.user.id, email=auth.user.email)

    return _register


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(settings, database):
    """
    Application wired to the per-test store.

    ASGITransport does not run the lifespan; create_app attaches settings
    and the store client eagerly, which is all the routes need.
    """
    return create_app(settings=settings, database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(test_client):
    """
    Factory: sign up over HTTP and return `Authorization` headers for the account.

    Usage:
        headers = await auth_headers("a@example.com")
        await test_client.post("/api/listings", json={...}, headers=headers)
    """
    async def _signup(email: str, password: str = TEST_PASSWORD) -> dict:
        response = await test_client.post(
            "/api/auth/signup", json={"email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _signup
