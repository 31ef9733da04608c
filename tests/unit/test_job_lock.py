"""Tests for the Redis job lock."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.utils.redis_utils import job_lock


@pytest.fixture
def redis_lock():
    """Mock redis lock object."""
    lock = MagicMock()
    lock.acquire = AsyncMock(return_value=True)
    lock.release = AsyncMock()
    return lock


@pytest.fixture
def redis_client(redis_lock):
    """Mock redis client returning redis_lock."""
    client = MagicMock()
    client.lock = MagicMock(return_value=redis_lock)
    client.aclose = AsyncMock()
    return client


class TestJobLock:
    """Test lock acquisition and release."""

    @pytest.mark.asyncio
    async def test_acquired_and_released(self, redis_client, redis_lock):
        """Lock is released after the block."""
        async with job_lock("daily-roi", 60, client=redis_client) as acquired:
            assert acquired is True

        redis_client.lock.assert_called_once_with(
            "staking:lock:daily-roi", timeout=60, blocking=False
        )
        redis_lock.release.assert_awaited_once()
        redis_client.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_acquired(self, redis_client, redis_lock):
        """A held lock yields False and is not released."""
        redis_lock.acquire.return_value = False

        async with job_lock("daily-roi", 60, client=redis_client) as acquired:
            assert acquired is False

        redis_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_released_on_error(self, redis_client, redis_lock):
        """Lock is released when the job raises."""
        with pytest.raises(RuntimeError):
            async with job_lock("team-roi", 60, client=redis_client):
                raise RuntimeError("boom")

        redis_lock.release.assert_awaited_once()
