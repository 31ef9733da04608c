"""
Database configuration.

Async SQLAlchemy engine and session factory for the application.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """Create async engine for the configured database."""
    url = database_url or settings.database_url
    options = {"echo": settings.database_echo}
    if not url.startswith("sqlite"):
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    options.update(kwargs)
    return create_async_engine(url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = create_engine()
async_session_maker = create_session_maker(engine)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session from the default factory."""
    async with async_session_maker() as session:
        yield session
