"""
Staking service.

Facade over the staking ledger: opening stakes, the unstake cooldown,
cancellation and per-user queries.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import DIRECT_BONUS_RATE, UNSTAKE_COOLDOWN_DAYS
from app.models.enums import StakeStatus
from app.models.staking_entry import StakingEntry
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import LinkedVoucher, VoucherRepository
from app.services.base_service import BaseService, transaction
from app.services.distribution.balance_handler import BalanceHandler
from app.services.promotion.promotion_service import PromotionService
from app.services.staking.creator import StakeCreator, validate_stake_amount
from app.services.staking.status_manager import StakeStatusManager
from app.utils.datetime_utils import Clock
from app.utils.exceptions import NotFoundError, ValidationError

ZERO = Decimal("0")


@dataclass
class StakeSummary:
    """Aggregated staking figures of a user."""

    user_id: str
    on_stake_count: int = 0
    total_on_stake: Decimal = ZERO
    total_earned: Decimal = ZERO
    completed_count: int = 0
    balance: Decimal = ZERO
    on_staking: Decimal = ZERO
    team_earning: Decimal = ZERO
    missed_earnings: Decimal = ZERO
    by_status: dict[str, int] = field(default_factory=dict)


class StakingService(BaseService):
    """
    Staking ledger operations.

    create_stake commits the stake first; promotion rewards for the buyer
    and the sponsor's milestone check run afterwards in their own units of
    work.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        promotion_service: PromotionService | None = None,
    ) -> None:
        """Initialize staking service."""
        super().__init__(session, clock)
        self.entry_repo = StakingEntryRepository(session)
        self.balance_repo = UserBalanceRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.voucher_repo = VoucherRepository(session)
        self.balance_handler = BalanceHandler(session)
        self.creator = StakeCreator(session)
        self.status_manager = StakeStatusManager()
        self.promotion_service = promotion_service or PromotionService(session, self.clock)

    async def create_stake(self, user_id: str, amount: Decimal | int | str) -> StakingEntry:
        """
        Open a stake funded from the wallet balance.

        Args:
            user_id: Staking user
            amount: Exact package amount

        Returns:
            Created entry

        Raises:
            ValidationError: Bad amount, no matching package or
                insufficient balance; nothing is written
        """
        entry = await self._open_paid_stake(user_id, amount)

        await self.promotion_service.grant_package_purchase_reward(
            user_id, entry.package_id, entry.id
        )
        sponsor_id = await self.invited_repo.get_sponsor_id(user_id)
        if sponsor_id is not None:
            await self.promotion_service.check_and_grant_team_rewards(sponsor_id)

        return entry

    @transaction
    async def _open_paid_stake(self, user_id: str, amount: Decimal | int | str) -> StakingEntry:
        value, package = validate_stake_amount(amount)

        wallet = await self.balance_handler.get_wallet(user_id)
        if wallet.balance < value:
            raise ValidationError(
                f"Insufficient balance. Available: {wallet.balance:.2f}"
            )

        entry = await self.creator.open_entry(user_id, value, package, self.clock.now())
        await self.balance_handler.debit_for_stake(user_id, value, stake_id=entry.id)
        await self._pay_direct_bonus(user_id, entry)
        return entry

    async def _pay_direct_bonus(self, user_id: str, entry: StakingEntry) -> None:
        sponsor_id = await self.invited_repo.get_sponsor_id(user_id)
        if sponsor_id is None:
            return

        if not await self.entry_repo.has_on_stake_entry(sponsor_id):
            self.logger.debug(
                "Sponsor has no stake, direct bonus skipped",
                extra={"sponsor_id": sponsor_id, "entry_id": entry.id},
            )
            return

        bonus = entry.amount * DIRECT_BONUS_RATE
        if bonus <= 0:
            return
        await self.balance_handler.credit_direct_bonus(sponsor_id, bonus, entry.id, user_id)
        self.logger.info(
            f"Direct bonus {bonus} paid to {sponsor_id}",
            extra={"sponsor_id": sponsor_id, "entry_id": entry.id, "bonus": str(bonus)},
        )

    async def _get_owned_entry(self, user_id: str, stake_id: int) -> StakingEntry:
        entry = await self.entry_repo.get_user_entry(user_id, stake_id, for_update=True)
        if entry is None:
            raise NotFoundError(f"Stake {stake_id} not found")
        return entry

    @transaction
    async def request_unstake(self, user_id: str, stake_id: int) -> StakingEntry:
        """
        Start the unstake cooldown of an active entry.

        Raises:
            NotFoundError: Entry missing or not owned
            InvalidStatusTransitionError: Entry is not active
        """
        entry = await self._get_owned_entry(user_id, stake_id)
        now = self.clock.now()
        self.status_manager.request_unstake(
            entry, now, now + timedelta(days=UNSTAKE_COOLDOWN_DAYS)
        )
        await self.session.flush()
        return entry

    @transaction
    async def complete_unstake(self, user_id: str, stake_id: int) -> Decimal:
        """
        Release an entry whose cooldown has ended.

        The principal returned is the staked amount minus what the entry
        already earned, never negative. Voucher positions return nothing.

        Returns:
            Principal credited to the wallet

        Raises:
            NotFoundError: Entry missing or not owned
            ValidationError: Entry not unstaking or cooldown not over
        """
        entry = await self._get_owned_entry(user_id, stake_id)
        if entry.status != StakeStatus.UNSTAKING.value:
            raise ValidationError("Stake is not in unstake cooldown")

        now = self.clock.now()
        if entry.cooldown_end_date is None or now < entry.cooldown_end_date:
            raise ValidationError("Unstake cooldown has not ended")

        principal = await self._principal_to_return(entry)
        self.status_manager.complete(entry, now)
        await self.balance_handler.return_principal(user_id, principal, entry.amount, entry.id)
        await self.session.flush()

        self.logger.info(
            f"Unstake completed for entry {entry.id}",
            extra={"entry_id": entry.id, "user_id": user_id, "principal": str(principal)},
        )
        return principal

    @transaction
    async def cancel_stake(self, stake_id: int, reason: str) -> StakingEntry:
        """
        Cancel an active entry and return its unearned principal.

        Raises:
            NotFoundError: Entry missing
            InvalidStatusTransitionError: Entry is not active
        """
        entry = await self.entry_repo.get_by_id(stake_id, for_update=True)
        if entry is None:
            raise NotFoundError(f"Stake {stake_id} not found")

        self.status_manager.cancel(entry, self.clock.now(), reason)
        principal = await self._principal_to_return(entry)
        await self.balance_handler.return_principal(
            entry.user_id, principal, entry.amount, entry.id
        )
        await self.session.flush()
        return entry

    async def _principal_to_return(self, entry: StakingEntry) -> Decimal:
        link = await self.voucher_repo.get_link(entry.id)
        if isinstance(link, LinkedVoucher):
            return ZERO
        return max(ZERO, entry.amount - entry.total_earned)

    async def get_on_stake_entries(self, user_id: str) -> list[StakingEntry]:
        """Get active and unstaking entries of a user."""
        return await self.entry_repo.get_on_stake_entries(user_id)

    async def get_stake_summary(self, user_id: str) -> StakeSummary:
        """Aggregate a user's entries and wallet."""
        totals = await self.entry_repo.get_status_totals(user_id)
        summary = StakeSummary(user_id=user_id)

        for status, (count, amount, earned) in totals.items():
            summary.by_status[status] = count
            summary.total_earned += earned
            if status in (StakeStatus.ACTIVE.value, StakeStatus.UNSTAKING.value):
                summary.on_stake_count += count
                summary.total_on_stake += amount
            elif status == StakeStatus.COMPLETED.value:
                summary.completed_count += count

        wallet = await self.balance_repo.get_by_user_id(user_id)
        if wallet is not None:
            summary.balance = wallet.balance
            summary.on_staking = wallet.on_staking
            summary.team_earning = wallet.team_earning
            summary.missed_earnings = wallet.missed_earnings
        return summary
