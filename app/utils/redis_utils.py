"""Redis connection utilities.

Client creation from settings and the lock that keeps two workers from
running the same distribution job at once.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger

from app.config.settings import settings


def get_redis_client() -> redis.Redis:
    """
    Create a Redis client with settings from config.

    Returns:
        redis.Redis: Configured client with decode_responses=True
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )


def get_redis_url_masked() -> str:
    """Redis URL with the password masked, for logging."""
    auth = ":****@" if settings.redis_password else ""
    return f"redis://{auth}{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"


@asynccontextmanager
async def job_lock(
    name: str, timeout: float, client: redis.Redis | None = None
) -> AsyncIterator[bool]:
    """
    Non-blocking Redis lock around a job run.

    Args:
        name: Lock name
        timeout: Lock expiry in seconds
        client: Redis client, a new one from settings if None

    Yields:
        True if the lock was acquired
    """
    owns_client = client is None
    client = client or get_redis_client()
    lock = client.lock(f"staking:lock:{name}", timeout=timeout, blocking=False)
    acquired = await lock.acquire()
    try:
        if not acquired:
            logger.warning(f"Job {name} is already running, skipping", extra={"job": name})
        yield acquired
    finally:
        if acquired:
            await lock.release()
        if owns_client:
            await client.aclose()
