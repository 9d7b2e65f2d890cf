"""Pytest configuration and fixtures."""

import os

# Test settings must be in place BEFORE any subway imports load them
os.environ["DEBUG"] = "true"
os.environ["SECRET_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ["OTEL_ENABLED"] = "false"

from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from subway.core.database import enable_sqlite_foreign_keys, get_db
from subway.main import app
from subway.models import Base, Line, Section, Station

pytest_plugins = ["tests.fixtures.otel"]

# One in-memory database shared by every connection of a test's engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@dataclass
class TestDatabaseContext:
    """Engine and session factory backing one test's database."""

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]


@pytest.fixture
async def db_engine() -> AsyncGenerator[TestDatabaseContext]:
    """
    Create a fresh in-memory database with the full schema for each test.

    StaticPool keeps a single connection alive, so the schema created here is
    the one every session of the test sees.

    Yields:
        TestDatabaseContext: Engine and session factory
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    yield TestDatabaseContext(engine=engine, session_factory=session_factory)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: TestDatabaseContext) -> AsyncGenerator[AsyncSession]:
    """
    Database session for one test.

    Args:
        db_engine: Per-test database context

    Yields:
        Async SQLAlchemy session
    """
    async with db_engine.session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """
    Async HTTP client whose requests use the test database session.

    Args:
        db_session: Test database session

    Yields:
        Async HTTP client with ASGI transport
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# Data factories

StationFactory = Callable[[str], Awaitable[Station]]


@pytest.fixture
def make_station(db_session: AsyncSession) -> StationFactory:
    """
    Factory persisting a station with the given name.

    Returns:
        Async callable creating a station
    """

    async def _make_station(name: str) -> Station:
        station = Station(name=name)
        db_session.add(station)
        await db_session.commit()
        return station

    return _make_station


@pytest.fixture
async def stations(make_station: StationFactory) -> dict[str, Station]:
    """
    Five persisted stations keyed by name: A, B, C, D and E.

    Returns:
        Mapping of station name to station
    """
    return {name: await make_station(name) for name in ("A", "B", "C", "D", "E")}


@pytest.fixture
def make_line(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[Line]]:
    """
    Factory persisting a line from an ordered list of (up, down, distance) hops.

    Returns:
        Async callable creating a line
    """

    async def _make_line(name: str, hops: list[tuple[Station, Station, int]], color: str = "bg-green-600") -> Line:
        line = Line(name=name, color=color)
        line.sections = [
            Section(
                up_station_id=up.id,
                up_station=up,
                down_station_id=down.id,
                down_station=down,
                distance=distance,
            )
            for up, down, distance in hops
        ]
        db_session.add(line)
        await db_session.commit()
        return line

    return _make_line
