"""
Wallet balance handling module.

All wallet mutations go through BalanceHandler: each one locks the wallet
row (creating it on first use), applies an additive change and appends a
TransactionRecord in the caller's transaction.
"""

from datetime import date
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TransactionType
from app.models.user_balance import UserBalance
from app.repositories.transaction_record_repository import TransactionRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.utils.exceptions import ValidationError

ZERO = Decimal("0")


class BalanceHandler:
    """Handles wallet credits and debits. Never commits."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize balance handler.

        Args:
            session: Database session
        """
        self.session = session
        self.balance_repo = UserBalanceRepository(session)
        self.transaction_repo = TransactionRecordRepository(session)

    async def get_wallet(self, user_id: str) -> UserBalance:
        """Get the locked wallet of a user, creating it if missing."""
        return await self.balance_repo.get_or_create(user_id)

    async def debit_for_stake(
        self, user_id: str, amount: Decimal, stake_id: int | None = None
    ) -> UserBalance:
        """
        Move amount from balance to on_staking.

        Raises:
            ValidationError: If balance is lower than amount
        """
        wallet = await self.get_wallet(user_id)
        if wallet.balance < amount:
            raise ValidationError(
                f"Insufficient balance. Available: {wallet.balance:.2f}"
            )

        wallet.balance -= amount
        wallet.on_staking += amount
        await self.transaction_repo.record(
            user_id,
            TransactionType.STAKE,
            -amount,
            description="Stake opened",
            stake_id=stake_id,
        )
        return wallet

    async def add_on_staking(self, user_id: str, amount: Decimal) -> UserBalance:
        """Increase on_staking without touching balance (voucher positions)."""
        wallet = await self.get_wallet(user_id)
        wallet.on_staking += amount
        return wallet

    async def release_on_staking(self, user_id: str, amount: Decimal) -> UserBalance:
        """Decrease on_staking, never below zero."""
        wallet = await self.get_wallet(user_id)
        wallet.on_staking = max(ZERO, wallet.on_staking - amount)
        return wallet

    async def return_principal(
        self, user_id: str, principal: Decimal, amount: Decimal, stake_id: int
    ) -> UserBalance:
        """
        Release an unstaked entry.

        Args:
            user_id: Owner
            principal: Amount credited back to balance
            amount: Staked amount removed from on_staking
            stake_id: Entry id
        """
        wallet = await self.release_on_staking(user_id, amount)
        if principal > 0:
            wallet.balance += principal
            await self.transaction_repo.record(
                user_id,
                TransactionType.UNSTAKE_RETURN,
                principal,
                description="Principal returned after unstake",
                stake_id=stake_id,
            )
        return wallet

    async def credit_daily_roi(
        self,
        user_id: str,
        amount: Decimal,
        day: date,
        stake_id: int,
        counts_toward_cap: bool = True,
        missed: Decimal = ZERO,
    ) -> UserBalance:
        """
        Credit one day of ROI from an entry.

        The first credit of a new day replaces daily_earning, later credits
        on the same day add to it. missed is the part of the day's ROI cut
        off by the entry cap.
        """
        wallet = await self.get_wallet(user_id)
        if wallet.daily_earning_date != day:
            wallet.daily_earning = amount
            wallet.daily_earning_date = day
        else:
            wallet.daily_earning += amount

        wallet.balance += amount
        wallet.latest_earning = amount
        if counts_toward_cap:
            wallet.capped_earned += amount

        await self.transaction_repo.record(
            user_id,
            TransactionType.DAILY_REWARD,
            amount,
            description="Daily staking reward",
            stake_id=stake_id,
        )
        if missed > 0:
            wallet.missed_earnings += missed
            logger.info(
                "Daily ROI exceeded remaining cap",
                extra={"user_id": user_id, "stake_id": stake_id, "missed": str(missed)},
            )
        return wallet

    async def credit_team_earning(
        self, user_id: str, credited: Decimal, missed: Decimal
    ) -> UserBalance:
        """Credit applied team earning and book the part that did not fit."""
        wallet = await self.get_wallet(user_id)
        if credited > 0:
            wallet.balance += credited
            wallet.team_earning += credited
            await self.transaction_repo.record(
                user_id,
                TransactionType.TEAM_REWARD,
                credited,
                description="Team earning",
            )
        if missed > 0:
            wallet.missed_earnings += missed
            logger.info(
                "Team earning exceeded remaining cap",
                extra={"user_id": user_id, "missed": str(missed)},
            )
        return wallet

    async def credit_direct_bonus(
        self, sponsor_id: str, amount: Decimal, stake_id: int, source_user_id: str
    ) -> UserBalance:
        """Credit the sponsor bonus for an invitee's new stake."""
        wallet = await self.get_wallet(sponsor_id)
        wallet.balance += amount
        wallet.max_earn += amount
        await self.transaction_repo.record(
            sponsor_id,
            TransactionType.DIRECT_BONUS,
            amount,
            description=f"Direct bonus from {source_user_id}",
            stake_id=stake_id,
        )
        return wallet

    async def credit_voucher(
        self, user_id: str, amount: Decimal, voucher_id: int, code: str
    ) -> UserBalance:
        """Credit a redeemed withdraw voucher."""
        wallet = await self.get_wallet(user_id)
        wallet.balance += amount
        await self.transaction_repo.record(
            user_id,
            TransactionType.VOUCHER_CREDIT,
            amount,
            description=f"Voucher {code} redeemed",
            voucher_id=voucher_id,
        )
        return wallet
