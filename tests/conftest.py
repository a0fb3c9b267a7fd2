"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_projection_lab.db")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "false")

from projection_lab.core.database import (  # noqa: E402
    build_engine,
    build_session_factory,
    get_db,
    init_schema,
)
from projection_lab.main import app  # noqa: E402
from projection_lab.models.organization import Organization  # noqa: E402
from projection_lab.schemas.user import UserInput  # noqa: E402
from projection_lab.services.org_service import OrganizationService  # noqa: E402
from projection_lab.services.user_service import UserService  # noqa: E402

# Fresh in-memory database per test; StaticPool keeps it on one connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"

CHAIN_NAMES = ("Ola", "Kari", "Hans", "Siri")


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test engine with all tables created."""
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tests that need one session per call."""
    return build_session_factory(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database dependency override.

    Args:
        db: Test database session

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_org(db: AsyncSession) -> Organization:
    """Create the organization "MyOrg"."""
    return await OrganizationService(db).create(name="MyOrg")


@pytest_asyncio.fixture
async def supervision_chain(db: AsyncSession, test_org: Organization) -> dict[str, str]:
    """Create Ola <- Kari <- Hans <- Siri (each supervised by the previous one).

    Returns:
        User ids keyed by given name
    """
    service = UserService(db)
    ids: dict[str, str] = {}
    supervisor_id = None
    for name in CHAIN_NAMES:
        user = await service.create(
            test_org.id,
            UserInput(given_name=name, family_name="Nordmann", supervisor_id=supervisor_id),
        )
        ids[name] = user.id
        supervisor_id = user.id
    return ids
