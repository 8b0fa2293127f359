"""Pytest configuration and shared fixtures.

This module provides:
- Environment defaults so Settings validates without a .env file
- A fresh in-memory SQLite engine per test (foreign keys on, so cascades
  behave like PostgreSQL)
- Async session fixtures for repository/service tests
- Reference calendars in UTC and in a DST-observing zone
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REFERENCE_TIMEZONE", "UTC")

from collections.abc import AsyncGenerator, Generator
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.config import clear_settings_cache
from core.database import Base, enable_sqlite_foreign_keys
from models import Habit, User
from services.calendar_service import ReferenceCalendar

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Module-level constants for tests that need to set up data directly
TEST_USER_ID = "user_test_123456789"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """Create a fresh in-memory database engine for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(
    test_engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide a database session for each test."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Calendar Fixtures
# =============================================================================


@pytest.fixture
def utc_calendar() -> ReferenceCalendar:
    return ReferenceCalendar(zone=ZoneInfo("UTC"))


@pytest.fixture
def ny_calendar() -> ReferenceCalendar:
    """America/New_York observes DST, useful for boundary tests."""
    return ReferenceCalendar(zone=ZoneInfo("America/New_York"))


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def test_user_id() -> str:
    return TEST_USER_ID


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, test_user_id: str) -> User:
    user = User(id=test_user_id, email="test@example.com", username="tester")
    db_session.add(user)
    await db_session.flush()
    return user


@pytest_asyncio.fixture
async def test_habit(db_session: AsyncSession, test_user: User) -> Habit:
    habit = Habit(user_id=test_user.id, name="Read", goal=3)
    db_session.add(habit)
    await db_session.flush()
    return habit


# =============================================================================
# Utility Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
