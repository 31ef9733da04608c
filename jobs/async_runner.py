"""
Async runner for dramatiq tasks.

Runs coroutines from synchronous dramatiq actors on a per-thread event
loop, with a NullPool engine bound to that loop.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config.settings import settings

T = TypeVar("T")

_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create the event loop of the current worker thread.

    Reusing one loop per thread avoids "Future attached to a different
    loop" errors from connections created on another loop.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(f"Created new event loop for thread {threading.current_thread().name}")
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine in the thread's event loop.

    Args:
        coro: Coroutine to run

    Returns:
        Result of the coroutine
    """
    return get_event_loop().run_until_complete(coro)


@asynccontextmanager
async def local_session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory bound to a NullPool engine on the current loop.

    The engine is disposed when the block exits.
    """
    engine = create_async_engine(settings.database_url, echo=False, poolclass=NullPool)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
