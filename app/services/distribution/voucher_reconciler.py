"""
Voucher expiry reconciler.

Completes voucher positions whose ROI window has ended but which are still
active, for example because the daily run was skipped. Safe to repeat.
"""

from dataclasses import asdict, dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.repositories.staking_entry_repository import StakingEntryRepository
from app.services.base_service import BaseService
from app.services.distribution.balance_handler import BalanceHandler
from app.services.staking.status_manager import StakeStatusManager
from app.utils.datetime_utils import Clock


@dataclass
class ReconcileSummary:
    """Counters of one reconciliation run."""

    checked: int = 0
    completed: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class VoucherExpiryReconciler(BaseService):
    """Closes expired voucher positions."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """Initialize reconciler."""
        super().__init__(session, clock)
        self.entry_repo = StakingEntryRepository(session)
        self.balance_handler = BalanceHandler(session)
        self.status_manager = StakeStatusManager()

    async def reconcile_expired_vouchers(self) -> ReconcileSummary:
        """
        Complete on-stake entries linked to a used voucher past roi_end_date.

        The entry end_date is the voucher's roi_end_date, not the time of
        the run.
        """
        summary = ReconcileSummary()
        now = self.clock.now()
        positions = await self.entry_repo.find_expired_voucher_positions(now)

        for entry_id, roi_end_date in positions:
            summary.checked += 1
            try:
                entry = await self.entry_repo.get_by_id(entry_id, for_update=True)
                if entry is None or not entry.is_on_stake:
                    await self.commit()
                    continue
                self.status_manager.complete(entry, now, end_date=roi_end_date)
                await self.balance_handler.release_on_staking(entry.user_id, entry.amount)
                await self.session.flush()
                await self.commit()
                summary.completed += 1
            except Exception as e:
                await self.rollback()
                summary.failed += 1
                self.logger.exception(
                    f"Failed to complete expired voucher position {entry_id}",
                    extra={"entry_id": entry_id, "error": str(e)},
                )

        self.logger.info("Voucher expiry reconciliation finished", extra=summary.to_dict())
        return summary
