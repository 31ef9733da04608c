"""
Daily ROI distributor.

Credits one day of ROI to every active or unstaking staking entry. Each
entry is its own unit of work: the entry update, the wallet credit and
the transaction record are committed together or not at all, and a
failing entry never stops the sweep.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.voucher_repository import (
    NO_VOUCHER,
    LinkedVoucher,
    VoucherLink,
    VoucherRepository,
)
from app.services.base_service import BaseService
from app.services.distribution.balance_handler import BalanceHandler
from app.services.staking.calculator import EarningCalculator
from app.services.staking.status_manager import StakeStatusManager
from app.utils.datetime_utils import Clock

ZERO = Decimal("0")


class EntryOutcome(str, Enum):
    """Result of processing one entry."""

    CREDITED = "credited"
    CREDITED_AND_COMPLETED = "credited_and_completed"
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass
class DistributionSummary:
    """Counters of one distribution run."""

    processed: int = 0
    credited: int = 0
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    total_rewarded: Decimal = ZERO
    total_missed: Decimal = ZERO

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_rewarded"] = str(self.total_rewarded)
        data["total_missed"] = str(self.total_missed)
        return data


class DailyRoiDistributor(BaseService):
    """Daily ROI sweep over staking entries."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """Initialize distributor."""
        super().__init__(session, clock)
        self.entry_repo = StakingEntryRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.balance_handler = BalanceHandler(session)
        self.calculator = EarningCalculator()
        self.status_manager = StakeStatusManager()

    async def distribute_daily_earnings(self, user_id: str | None = None) -> DistributionSummary:
        """
        Run the daily ROI sweep.

        Re-running on the same UTC day credits nothing twice: entries
        carry the date of their last credit.

        Args:
            user_id: Restrict to one user's entries

        Returns:
            Distribution summary
        """
        summary = DistributionSummary()

        if settings.emergency_stop_roi:
            self.logger.warning("ROI distribution skipped: emergency stop is active")
            return summary

        now = self.clock.now()
        today = self.clock.today()

        entry_ids = await self.entry_repo.get_on_stake_ids(user_id)
        # Full sweeps load links unfiltered, without an IN list of every entry
        links = await self.voucher_repo.get_links(entry_ids if user_id is not None else None)

        self.logger.info(
            f"Starting daily ROI distribution for {len(entry_ids)} entries",
            extra={"entries": len(entry_ids), "day": today.isoformat(), "user_id": user_id},
        )

        for entry_id in entry_ids:
            summary.processed += 1
            try:
                outcome, credit, missed = await self._process_entry(
                    entry_id, links.get(entry_id, NO_VOUCHER), now, today
                )
                await self.commit()
            except Exception as e:
                await self.rollback()
                summary.failed += 1
                self.logger.exception(
                    f"Failed to distribute ROI for entry {entry_id}",
                    extra={"entry_id": entry_id, "error": str(e)},
                )
                continue

            if outcome in (EntryOutcome.CREDITED, EntryOutcome.CREDITED_AND_COMPLETED):
                summary.credited += 1
                summary.total_rewarded += credit
                summary.total_missed += missed
            if outcome in (EntryOutcome.COMPLETED, EntryOutcome.CREDITED_AND_COMPLETED):
                summary.completed += 1
            if outcome == EntryOutcome.SKIPPED:
                summary.skipped += 1

        self.logger.info(
            "Daily ROI distribution finished",
            extra=summary.to_dict(),
        )
        return summary

    async def _process_entry(
        self, entry_id: int, link: VoucherLink, now: datetime, today: date
    ) -> tuple[EntryOutcome, Decimal, Decimal]:
        entry = await self.entry_repo.get_by_id(entry_id, for_update=True)
        if entry is None or not entry.is_on_stake:
            return EntryOutcome.SKIPPED, ZERO, ZERO

        # Voucher positions stop at the end of their ROI window
        if isinstance(link, LinkedVoucher) and now > link.roi_end_date:
            self.status_manager.complete(entry, now, end_date=link.roi_end_date)
            await self.balance_handler.release_on_staking(entry.user_id, entry.amount)
            await self.session.flush()
            return EntryOutcome.COMPLETED, ZERO, ZERO

        if entry.last_credited_date == today:
            return EntryOutcome.SKIPPED, ZERO, ZERO

        credit, overflow = self.calculator.calculate_daily_entry_credit(entry)
        if credit <= 0:
            self.status_manager.complete(entry, now)
            await self.balance_handler.release_on_staking(entry.user_id, entry.amount)
            await self.session.flush()
            return EntryOutcome.COMPLETED, ZERO, ZERO

        entry.total_earned += credit
        entry.last_credited_date = today
        await self.balance_handler.credit_daily_roi(
            entry.user_id,
            credit,
            today,
            stake_id=entry.id,
            counts_toward_cap=entry.counts_toward_cap,
            missed=overflow,
        )

        outcome = EntryOutcome.CREDITED
        if self.calculator.is_cap_reached(entry):
            self.status_manager.complete(entry, now)
            await self.balance_handler.release_on_staking(entry.user_id, entry.amount)
            outcome = EntryOutcome.CREDITED_AND_COMPLETED

        await self.session.flush()
        return outcome, credit, overflow
