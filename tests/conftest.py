"""Test fixtures: a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own aiosqlite in-memory engine. StaticPool keeps a
   single connection alive, so every session sees the same database.
2. Tables are created from the models, so no migrations are needed.
3. The app's get_db dependency is overridden to hand out sessions from
   that engine, one new session per request, like production.
4. Auth is NOT mocked. `make_user` registers and logs in through the real
   endpoints and returns ready-made Authorization headers.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tasklist.auth.tokens import TokenService
from tasklist.config import Settings
from tasklist.db.engine import get_db
from tasklist.db.models import Base
from tasklist.main import create_app

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_SECRET = "test-secret-not-for-production-use-only"


@pytest.fixture()
def settings():
    """Explicit settings. bcrypt at cost 4 keeps the suite fast."""
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url=TEST_DB_URL,
        bcrypt_rounds=4,
    )


@pytest.fixture()
def tokens(settings):
    return TokenService(settings)


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Session for tests that call services directly (no HTTP)."""
    async with session_factory() as session:
        yield session


@pytest.fixture()
def app(settings, session_factory):
    app = create_app(settings)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_user(client):
    """Register + login a user; returns (user_json, auth_headers)."""

    async def _make(username: str, password: str = "password-123"):
        r = await client.post(
            "/register", json={"username": username, "password": password}
        )
        assert r.status_code == 200, r.text
        user = r.json()

        r = await client.post(
            "/login", json={"username": username, "password": password}
        )
        assert r.status_code == 200, r.text
        headers = {"Authorization": f"Bearer {r.json()['token']}"}
        return user, headers

    return _make


@pytest_asyncio.fixture()
async def alice(make_user):
    return await make_user("alice", "pw1")


@pytest_asyncio.fixture()
async def bob(make_user):
    return await make_user("bob", "pw2")
