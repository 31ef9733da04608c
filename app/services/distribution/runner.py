"""
Distribution job runner.

Entry points shared by the HTTP triggers and the dramatiq actors. Each job
opens its own session and returns a JSON-ready summary.
"""

from collections.abc import Awaitable, Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.services.distribution.roi_distributor import DailyRoiDistributor
from app.services.distribution.team_distributor import TeamEarningDistributor
from app.services.distribution.voucher_reconciler import VoucherExpiryReconciler
from app.services.voucher.voucher_service import VoucherService
from app.utils.datetime_utils import Clock

SessionMaker = async_sessionmaker[AsyncSession]
Job = Callable[[SessionMaker, Clock | None], Awaitable[dict]]


async def run_daily_roi(session_maker: SessionMaker, clock: Clock | None = None) -> dict:
    """Run the daily ROI sweep."""
    async with session_maker() as session:
        summary = await DailyRoiDistributor(session, clock).distribute_daily_earnings()
    return summary.to_dict()


async def run_team_earnings(session_maker: SessionMaker, clock: Clock | None = None) -> dict:
    """Run the team earning sweep."""
    async with session_maker() as session:
        summary = await TeamEarningDistributor(session, clock).distribute_team_earnings()
    return summary.to_dict()


async def run_voucher_expiry(session_maker: SessionMaker, clock: Clock | None = None) -> dict:
    """Expire stale vouchers and complete expired voucher positions."""
    async with session_maker() as session:
        expired = await VoucherService(session, clock).expire_stale_vouchers()
        summary = await VoucherExpiryReconciler(session, clock).reconcile_expired_vouchers()
    result = summary.to_dict()
    result["vouchers_expired"] = expired
    logger.info("Voucher expiry job finished", extra=result)
    return result


JOBS: dict[str, Job] = {
    "daily-roi": run_daily_roi,
    "team-roi": run_team_earnings,
    "voucher-expiry": run_voucher_expiry,
}
