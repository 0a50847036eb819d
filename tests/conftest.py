import os
import sys
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

sys.path.append(str(Path(__file__).parents[1] / "src"))

ENV_TEST_PATH = Path(__file__).parents[1] / ".env.test"
TEST_API_KEY = "test-secret-key"


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key, value)


_load_env_file(ENV_TEST_PATH)

TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / f'lifedash-test-{os.getpid()}.db'}",
)

# Settings are read at import time, so point them at the test setup first.
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["API_SECRET_KEY"] = TEST_API_KEY
os.environ["AUTO_CREATE_TABLES"] = "false"

from lifedash.api.deps import get_http_client  # noqa: E402
from lifedash.db.session import get_db  # noqa: E402
from lifedash.main import app  # noqa: E402

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def setup_database():
    """Create tables for tests that need the database, and drop them after.

    Not autouse: pure unit tests (e.g. categorization rules) run without a
    database.
    """
    from lifedash.models.base import Base
    import lifedash.models  # noqa: F401

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await test_engine.dispose()


@pytest.fixture
def session_factory(setup_database):
    """Session factory for tests that need several independent sessions."""
    return TestSessionLocal


@pytest.fixture
async def db_session(setup_database):
    """Provide test database session with fresh connection per test."""
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create the dashboard owner every request is scoped to."""
    from lifedash.models.user import User
    from lifedash.repositories.user import UserRepository

    repo = UserRepository(db_session)
    return await repo.create(User(email="owner@example.com", full_name="Test User"))


@pytest.fixture
async def other_user(db_session: AsyncSession):
    """A second user, for ownership isolation checks."""
    from lifedash.models.user import User
    from lifedash.repositories.user import UserRepository

    repo = UserRepository(db_session)
    return await repo.create(User(email="other@example.com", full_name="Other User"))


@pytest.fixture
async def auth_headers(test_user):
    """Headers identifying ``test_user`` with the shared API key."""
    return {"x-api-key": TEST_API_KEY, "x-user-id": str(test_user.id)}


@pytest.fixture
def provider_routes() -> dict:
    """Map of (method, path) -> handler(request) -> httpx.Response.

    Tests register provider responses here; unknown routes answer 404.
    """
    return {}


@pytest.fixture
async def provider_http(provider_routes):
    """httpx client whose requests are answered from ``provider_routes``."""
    import httpx

    def handler(request: httpx.Request) -> httpx.Response:
        route = provider_routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        return route(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        yield http


@pytest.fixture
async def client(db_session: AsyncSession, provider_http):
    """Provide test client with database and provider HTTP overrides."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = lambda: provider_http

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
