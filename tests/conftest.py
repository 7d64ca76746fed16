"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.rate_limit import limiter
from app.db.base import Base
from app.db.session import create_engine_for_url, get_db
from app.models.asset import Asset, AssetCategory
from main import app

# Test database URL (SQLite in-memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def reset_limiter():
    """Reset rate limiter counters so write-heavy tests never see 429s."""
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine with foreign keys enforced."""
    engine = create_engine_for_url(TEST_DATABASE_URL)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_db(test_engine) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def _add_asset(db: AsyncSession, name: str, category: AssetCategory) -> Asset:
    asset = Asset(name=name, category=category)
    db.add(asset)
    await db.commit()
    await db.refresh(asset)
    return asset


@pytest_asyncio.fixture(scope="function")
async def stock(test_db: AsyncSession) -> Asset:
    """A security priced by observation (worth 0 until priced)."""
    return await _add_asset(test_db, "Index ETF", AssetCategory.SECURITY)


@pytest_asyncio.fixture(scope="function")
async def fund(test_db: AsyncSession) -> Asset:
    """A mutual fund."""
    return await _add_asset(test_db, "Bond Fund", AssetCategory.FUND)


@pytest_asyncio.fixture(scope="function")
async def deposit(test_db: AsyncSession) -> Asset:
    """A cash-like asset (defaults to face value 1.0 when unpriced)."""
    return await _add_asset(test_db, "Term Deposit", AssetCategory.FIXED)


@pytest_asyncio.fixture(scope="function")
async def gold(test_db: AsyncSession) -> Asset:
    """An alternative asset."""
    return await _add_asset(test_db, "Gold ETF", AssetCategory.GOLD)
