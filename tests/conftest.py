"""
Test infrastructure for the Quill API.

Strategy
--------
- SQLite in-memory via aiosqlite; StaticPool keeps every task on the one
  connection that holds the in-memory database.
- Foreign keys are switched on for that connection so ON DELETE CASCADE
  behaves as it does on Postgres.
- The app's get_db dependency is overridden with the test session factory.
- Tables are created before and dropped after each test.
- Redis is disabled with cache._redis = None; CacheManager treats that as
  a permanent miss.
- Social providers are replaced with MockProvider instances through the
  get_social_providers dependency, so no test talks to a real platform.
- bcrypt runs with the minimum cost factor to keep signups fast.
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from quill.cache import cache
from quill.database import Base, get_db
from quill.dependencies import get_social_providers
from quill.main import app
from quill.middleware import install_query_counter
from quill.social import MockProvider, SocialProfile

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)


@event.listens_for(engine_test.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Social login doubles
# ---------------------------------------------------------------------------

MOCK_PROFILES = {
    "google": {
        "googleauthtoken": SocialProfile("google", "g-100", "Ada", "Lovelace", "ada@example.com"),
        "googlenoemail": SocialProfile("google", "g-200", "No", "Email", None),
        "googleclash": SocialProfile("google", "g-300", "Fay", "Book", "fay@example.com"),
    },
    "facebook": {
        "facebookauthtoken": SocialProfile("facebook", "fb-100", "Fay", "Book", "fay@example.com"),
        "facebookclash": SocialProfile("facebook", "fb-200", "Ada", "Lovelace", "ada@example.com"),
    },
    "twitter": {
        "twitterauthtoken": SocialProfile("twitter", "tw-100", "Tess", "Bird", "tess@example.com"),
    },
}


def mock_providers() -> dict[str, MockProvider]:
    return {name: MockProvider(name, profiles) for name, profiles in MOCK_PROFILES.items()}


app.dependency_overrides[get_social_providers] = mock_providers


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for tests that call services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx.AsyncClient wired to the app via ASGITransport, Redis disabled."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(async_client: AsyncClient):
    """
    Factory fixture: sign up a local account and return the Authorization
    headers for it.
    """

    async def _make(email: str = "author@example.com", password: str = "pw123456") -> dict:
        resp = await async_client.post("/api/users/signup", json={
            "firstname": "Test",
            "lastname": "User",
            "email": email,
            "password": password,
        })
        assert resp.status_code == 201, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _make


@pytest.fixture
def social_profiles() -> dict:
    """The token -> profile table behind each mock provider."""
    return MOCK_PROFILES
