"""
StakingEntry repository.

Data access layer for StakingEntry model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ON_STAKE_STATUSES, StakeStatus, VoucherStatus
from app.models.staking_entry import StakingEntry
from app.models.voucher import Voucher
from app.repositories.base import BaseRepository


class StakingEntryRepository(BaseRepository[StakingEntry]):
    """Staking entry repository with ledger queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize staking entry repository."""
        super().__init__(StakingEntry, session)

    async def get_user_entry(
        self, user_id: str, entry_id: int, for_update: bool = False
    ) -> StakingEntry | None:
        """
        Get entry owned by user.

        Args:
            user_id: Owner ID
            entry_id: Entry ID
            for_update: Lock the row

        Returns:
            Entry or None if missing or owned by someone else
        """
        stmt = select(StakingEntry).where(
            StakingEntry.id == entry_id, StakingEntry.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_on_stake_entries(self, user_id: str) -> list[StakingEntry]:
        """Get active and unstaking entries of a user, newest first."""
        stmt = (
            select(StakingEntry)
            .where(StakingEntry.user_id == user_id)
            .where(StakingEntry.status.in_(ON_STAKE_STATUSES))
            .order_by(StakingEntry.created_at.desc(), StakingEntry.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_on_stake_ids(self, user_id: str | None = None) -> list[int]:
        """
        Get ids of entries eligible for daily ROI.

        Args:
            user_id: Restrict to one user, all users if None

        Returns:
            Entry ids in ascending order
        """
        stmt = select(StakingEntry.id).where(
            StakingEntry.status.in_(ON_STAKE_STATUSES)
        )
        if user_id is not None:
            stmt = stmt.where(StakingEntry.user_id == user_id)
        result = await self.session.execute(stmt.order_by(StakingEntry.id))
        return list(result.scalars().all())

    async def get_active_oldest_first(
        self, user_id: str, for_update: bool = False
    ) -> list[StakingEntry]:
        """Get active entries of a user in creation order."""
        stmt = (
            select(StakingEntry)
            .where(StakingEntry.user_id == user_id)
            .where(StakingEntry.status == StakeStatus.ACTIVE.value)
            .order_by(StakingEntry.created_at, StakingEntry.id)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_on_stake_entry(self, user_id: str) -> bool:
        """Check if user holds at least one active or unstaking entry."""
        stmt = (
            select(StakingEntry.id)
            .where(StakingEntry.user_id == user_id)
            .where(StakingEntry.status.in_(ON_STAKE_STATUSES))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_status_totals(
        self, user_id: str
    ) -> dict[str, tuple[int, Decimal, Decimal]]:
        """
        Aggregate entries of a user by status.

        Returns:
            Mapping status -> (count, total amount, total earned)
        """
        stmt = (
            select(
                StakingEntry.status,
                func.count(StakingEntry.id),
                func.coalesce(func.sum(StakingEntry.amount), 0),
                func.coalesce(func.sum(StakingEntry.total_earned), 0),
            )
            .where(StakingEntry.user_id == user_id)
            .group_by(StakingEntry.status)
        )
        result = await self.session.execute(stmt)
        return {
            status: (count, Decimal(str(amount)), Decimal(str(earned)))
            for status, count, amount, earned in result.all()
        }

    async def find_expired_voucher_positions(
        self, now: datetime
    ) -> list[tuple[int, datetime]]:
        """
        Find on-stake entries whose linked voucher ROI window has ended.

        Args:
            now: Reference time

        Returns:
            List of (entry id, voucher roi_end_date)
        """
        stmt = (
            select(StakingEntry.id, Voucher.roi_end_date)
            .join(Voucher, Voucher.applied_to_stake_id == StakingEntry.id)
            .where(StakingEntry.status.in_(ON_STAKE_STATUSES))
            .where(Voucher.status == VoucherStatus.USED.value)
            .where(Voucher.roi_end_date.is_not(None))
            .where(Voucher.roi_end_date < now)
            .order_by(StakingEntry.id)
        )
        result = await self.session.execute(stmt)
        return [(entry_id, roi_end) for entry_id, roi_end in result.all()]
