"""
Distribution tasks.

Dramatiq actors for cron-driven queue workers. Each actor takes a Redis
lock so a job never runs twice at the same time, then runs the same job
function as the HTTP trigger.
"""

import asyncio

import dramatiq
from loguru import logger

from app.config.settings import settings
from app.services.distribution.runner import JOBS
from app.utils.redis_utils import job_lock
from jobs.async_runner import local_session_maker, run_async
from jobs.broker import broker  # noqa: F401

# Milliseconds; leaves room for lock handling around the job timeout
ACTOR_TIME_LIMIT = (settings.distribution_timeout_seconds + 60) * 1000


async def _run_job(name: str) -> dict | None:
    async with job_lock(name, timeout=settings.distribution_timeout_seconds + 30) as acquired:
        if not acquired:
            return None
        async with local_session_maker() as session_maker:
            return await asyncio.wait_for(
                JOBS[name](session_maker, None),
                timeout=settings.distribution_timeout_seconds,
            )


def _execute(name: str) -> None:
    logger.info(f"Starting {name} job...")
    try:
        result = run_async(_run_job(name))
    except TimeoutError:
        logger.error(
            f"{name} job timed out after {settings.distribution_timeout_seconds}s",
            extra={"job": name},
        )
        raise
    except Exception as e:
        logger.exception(f"{name} job failed: {e}")
        raise

    if result is not None:
        logger.info(f"{name} job complete", extra={"job": name, **result})


@dramatiq.actor(max_retries=0, time_limit=ACTOR_TIME_LIMIT)
def distribute_daily_roi() -> None:
    """Daily ROI sweep. Not retried: a re-run the same day is a no-op anyway."""
    _execute("daily-roi")


@dramatiq.actor(max_retries=0, time_limit=ACTOR_TIME_LIMIT)
def distribute_team_earnings() -> None:
    """Team earning sweep, scheduled after the daily ROI sweep."""
    _execute("team-roi")


@dramatiq.actor(max_retries=2, time_limit=ACTOR_TIME_LIMIT)
def reconcile_voucher_expiry() -> None:
    """Expire stale vouchers and close expired voucher positions."""
    _execute("voucher-expiry")
