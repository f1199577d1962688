"""
Test infrastructure for the social network API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- The Redis cache is disabled by setting cache._redis = None; the CacheManager
  treats that as a permanent miss, so every feed request hits the database.
  Tests that exercise the feed cache ask for ``feed_cache``, which plugs an
  in-memory fakeredis client into the same CacheManager.
- Each logged-in user needs their own cookie jar, so ``client_factory`` hands
  out independent AsyncClients against the same app.
"""
from contextlib import AsyncExitStack

import pytest_asyncio
from fakeredis import aioredis
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from socialnet.cache import cache
from socialnet.database import Base, create_tables, get_db
from socialnet.main import app
from socialnet.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

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
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    await create_tables(engine_test)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for direct concept tests."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def client_factory():
    """
    Return a coroutine that opens a fresh AsyncClient (own cookie jar).

    All clients are closed when the test finishes.
    """
    cache._redis = None
    async with AsyncExitStack() as stack:

        async def make() -> AsyncClient:
            transport = ASGITransport(app=app)
            return await stack.enter_async_context(
                AsyncClient(transport=transport, base_url="http://test")
            )

        yield make


@pytest_asyncio.fixture
async def async_client(client_factory) -> AsyncClient:
    """A client with no session cookie yet."""
    return await client_factory()


@pytest_asyncio.fixture
async def user_client(client_factory):
    """
    Return a coroutine ``make(username, password="pw")`` that registers the
    user and yields a client already logged in as them.
    """

    async def make(username: str, password: str = "pw") -> AsyncClient:
        client = await client_factory()
        resp = await client.post("/users", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        resp = await client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return client

    return make


@pytest_asyncio.fixture
async def feed_cache(client_factory):
    """
    Back the app's CacheManager with an in-memory Redis for one test.

    Depends on ``client_factory`` so it runs after the cache is reset.
    """
    fake = aioredis.FakeRedis(decode_responses=True)
    cache._redis = fake
    yield fake
    cache._redis = None
    await fake.aclose()
