"""
UserBalance repository.

Data access layer for user wallets.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user_balance import UserBalance
from app.repositories.base import BaseRepository


class UserBalanceRepository(BaseRepository[UserBalance]):
    """Wallet repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user balance repository."""
        super().__init__(UserBalance, session)

    async def get_by_user_id(
        self, user_id: str, for_update: bool = False
    ) -> UserBalance | None:
        """
        Get wallet of a user.

        Args:
            user_id: User ID
            for_update: Lock the row until the transaction ends

        Returns:
            Wallet or None if the user has none yet
        """
        stmt = select(UserBalance).where(UserBalance.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> UserBalance:
        """Get the locked wallet of a user, creating an empty one if missing."""
        wallet = await self.get_by_user_id(user_id, for_update=True)
        if wallet is None:
            wallet = await self.create(user_id=user_id)
        return wallet

    async def get_daily_earners(self, day: date) -> list[tuple[str, Decimal]]:
        """
        Get users that earned ROI on a given day.

        Args:
            day: UTC calendar date

        Returns:
            List of (user_id, daily_earning) with positive earning
        """
        stmt = (
            select(UserBalance.user_id, UserBalance.daily_earning)
            .where(UserBalance.daily_earning_date == day)
            .where(UserBalance.daily_earning > 0)
            .order_by(UserBalance.user_id)
        )
        result = await self.session.execute(stmt)
        return [(user_id, Decimal(str(amount))) for user_id, amount in result.all()]
