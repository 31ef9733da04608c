"""
Team earning distributor.

Propagates each user's daily earning up the sponsor chain with the team
level percents, then applies every sponsor's total to their active
entries oldest first. Whatever does not fit under the entries' caps is
booked as missed earnings.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import MAX_TEAM_DEPTH, TEAM_LEVEL_PERCENTS
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TeamEarningRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.services.base_service import BaseService
from app.services.distribution.balance_handler import BalanceHandler
from app.services.staking.calculator import EarningCalculator
from app.services.staking.status_manager import StakeStatusManager
from app.utils.datetime_utils import Clock

ZERO = Decimal("0")


class TeamContribution(NamedTuple):
    """Share of one downline member's daily earning owed to a sponsor."""

    source_user_id: str
    level: int
    amount: Decimal


@dataclass
class TeamDistributionSummary:
    """Counters of one team distribution run."""

    processed: int = 0
    credited: int = 0
    skipped: int = 0
    failed: int = 0
    total_rewarded: Decimal = ZERO
    total_missed: Decimal = ZERO

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_rewarded"] = str(self.total_rewarded)
        data["total_missed"] = str(self.total_missed)
        return data


class TeamEarningDistributor(BaseService):
    """Daily team earning sweep."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """Initialize distributor."""
        super().__init__(session, clock)
        self.balance_repo = UserBalanceRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.entry_repo = StakingEntryRepository(session)
        self.record_repo = TeamEarningRecordRepository(session)
        self.balance_handler = BalanceHandler(session)
        self.calculator = EarningCalculator()
        self.status_manager = StakeStatusManager()

    async def collect_contributions(self, day: date) -> dict[str, list[TeamContribution]]:
        """
        Build the per-sponsor contributions of a day.

        Args:
            day: UTC day whose daily earnings are distributed

        Returns:
            Mapping sponsor id -> contributions
        """
        contributions: dict[str, list[TeamContribution]] = defaultdict(list)
        earners = await self.balance_repo.get_daily_earners(day)

        for user_id, daily_earning in earners:
            upline = await self.invited_repo.get_upline(user_id, MAX_TEAM_DEPTH)
            for level, sponsor_id in enumerate(upline, start=1):
                amount = daily_earning * TEAM_LEVEL_PERCENTS[level - 1]
                if amount > 0:
                    contributions[sponsor_id].append(
                        TeamContribution(user_id, level, amount)
                    )

        return dict(contributions)

    async def distribute_team_earnings(self) -> TeamDistributionSummary:
        """
        Run the team earning sweep for the clock's current UTC day.

        Each sponsor is one unit of work and is credited at most once per
        day.

        Returns:
            Team distribution summary
        """
        summary = TeamDistributionSummary()
        now = self.clock.now()
        today = self.clock.today()

        contributions = await self.collect_contributions(today)
        self.logger.info(
            f"Starting team earning distribution for {len(contributions)} sponsors",
            extra={"sponsors": len(contributions), "day": today.isoformat()},
        )

        for sponsor_id in sorted(contributions):
            summary.processed += 1
            try:
                result = await self._credit_sponsor(
                    sponsor_id, contributions[sponsor_id], now, today
                )
                await self.commit()
            except Exception as e:
                await self.rollback()
                summary.failed += 1
                self.logger.exception(
                    f"Failed to distribute team earning to {sponsor_id}",
                    extra={"sponsor_id": sponsor_id, "error": str(e)},
                )
                continue

            if result is None:
                summary.skipped += 1
                continue

            credited, missed = result
            if credited > 0:
                summary.credited += 1
            summary.total_rewarded += credited
            summary.total_missed += missed

        self.logger.info("Team earning distribution finished", extra=summary.to_dict())
        return summary

    async def _credit_sponsor(
        self,
        sponsor_id: str,
        contributions: list[TeamContribution],
        now: datetime,
        today: date,
    ) -> tuple[Decimal, Decimal] | None:
        wallet = await self.balance_handler.get_wallet(sponsor_id)
        if wallet.team_credited_date == today:
            return None

        total = sum((c.amount for c in contributions), ZERO)
        remaining = total

        entries = await self.entry_repo.get_active_oldest_first(sponsor_id, for_update=True)
        for entry in entries:
            if remaining <= 0:
                break
            applied = self.calculator.cap_credit_to_remaining(remaining, entry)
            if applied <= 0:
                continue
            entry.total_earned += applied
            remaining -= applied
            if self.calculator.is_cap_reached(entry):
                self.status_manager.complete(entry, now)
                await self.balance_handler.release_on_staking(sponsor_id, entry.amount)

        credited = total - remaining
        await self.balance_handler.credit_team_earning(sponsor_id, credited, remaining)
        wallet.team_credited_date = today

        # Records hold only the credited share, spent in contribution order
        unrecorded = credited
        for contribution in contributions:
            if unrecorded <= 0:
                break
            share = min(contribution.amount, unrecorded)
            unrecorded -= share
            await self.record_repo.create(
                sponsor_id=sponsor_id,
                source_user_id=contribution.source_user_id,
                level=contribution.level,
                amount=share,
                period_date=today,
                created_at=now,
            )

        await self.session.flush()
        return credited, remaining
