"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

# Minimal environment for Settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("LOG_FILE", "logs/test.log")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.models import Base, InvitedMember, PromotionRegistration, UserBalance
from app.utils.datetime_utils import FixedClock

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Wednesday, so the leaderboard window started on Sunday 2026-01-04 13:00 UTC
DEFAULT_NOW = datetime(2026, 1, 7, 12, 0, tzinfo=UTC)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def clock():
    """Clock frozen at DEFAULT_NOW."""
    return FixedClock(DEFAULT_NOW)


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_maker):
    """Test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def fund_wallet(db_session):
    """Create or top up a wallet and commit."""

    async def _fund(user_id: str, amount: Decimal | int | str) -> UserBalance:
        from app.repositories.user_balance_repository import UserBalanceRepository

        wallet = await UserBalanceRepository(db_session).get_or_create(user_id)
        wallet.balance += Decimal(str(amount))
        await db_session.commit()
        return wallet

    return _fund


@pytest.fixture
def invite(db_session, clock):
    """Record a sponsor -> invitee edge and commit."""

    async def _invite(sponsor_id: str, user_id: str) -> InvitedMember:
        member = InvitedMember(sponsor_id=sponsor_id, user_id=user_id, created_at=clock.now())
        db_session.add(member)
        await db_session.commit()
        return member

    return _invite


@pytest.fixture
def register_promotion(db_session, clock):
    """Register a user for the promotion at the clock's current time."""

    async def _register(user_id: str, registered_at: datetime | None = None) -> PromotionRegistration:
        registration = PromotionRegistration(
            user_id=user_id,
            promotion_type="prelaunch",
            registered_at=registered_at or clock.now(),
        )
        db_session.add(registration)
        await db_session.commit()
        return registration

    return _register
