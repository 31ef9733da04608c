"""
Voucher repository.

Data access layer for Voucher model. Resolves the optional voucher link
of a staking entry into an explicit NoVoucher | LinkedVoucher value.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import VoucherStatus
from app.models.voucher import Voucher
from app.repositories.base import BaseRepository


@dataclass(frozen=True)
class NoVoucher:
    """Entry is not backed by a voucher; its cap governs completion."""


@dataclass(frozen=True)
class LinkedVoucher:
    """Entry opened from a used voucher; ROI stops at roi_end_date."""

    voucher_id: int
    roi_end_date: datetime


VoucherLink = NoVoucher | LinkedVoucher

NO_VOUCHER = NoVoucher()


class VoucherRepository(BaseRepository[Voucher]):
    """Voucher repository with redemption queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize voucher repository."""
        super().__init__(Voucher, session)

    async def get_by_code(self, code: str, for_update: bool = False) -> Voucher | None:
        """Get voucher by redemption code."""
        stmt = select(Voucher).where(Voucher.code == code)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_voucher(
        self, user_id: str, voucher_id: int, for_update: bool = False
    ) -> Voucher | None:
        """Get voucher owned by user."""
        stmt = select(Voucher).where(
            Voucher.id == voucher_id, Voucher.user_id == user_id
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_vouchers(
        self, user_id: str, status: VoucherStatus | None = None
    ) -> list[Voucher]:
        """Get vouchers of a user, newest first."""
        stmt = select(Voucher).where(Voucher.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Voucher.status == status.value)
        result = await self.session.execute(stmt.order_by(Voucher.id.desc()))
        return list(result.scalars().all())

    async def get_existing_codes(self, codes: list[str]) -> set[str]:
        """Return the subset of codes already stored."""
        if not codes:
            return set()
        stmt = select(Voucher.code).where(Voucher.code.in_(codes))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def mark_used(
        self,
        voucher_id: int,
        used_at: datetime,
        roi_end_date: datetime | None = None,
        applied_to_stake_id: int | None = None,
    ) -> bool:
        """
        Consume an active voucher.

        The UPDATE is conditional on status = active, so a voucher can be
        consumed at most once even under concurrent requests.

        Returns:
            True if this call consumed the voucher
        """
        stmt = (
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .where(Voucher.status == VoucherStatus.ACTIVE.value)
            .values(
                status=VoucherStatus.USED.value,
                used_at=used_at,
                roi_end_date=roi_end_date,
                applied_to_stake_id=applied_to_stake_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def assign_owner(self, voucher_id: int, user_id: str) -> bool:
        """Assign an unclaimed voucher to a user. True if assigned."""
        stmt = (
            update(Voucher)
            .where(Voucher.id == voucher_id)
            .where(Voucher.user_id.is_(None))
            .values(user_id=user_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def expire_stale(self, now: datetime) -> int:
        """Mark active vouchers past their redemption deadline as expired."""
        stmt = (
            update(Voucher)
            .where(Voucher.status == VoucherStatus.ACTIVE.value)
            .where(Voucher.expires_at.is_not(None))
            .where(Voucher.expires_at <= now)
            .values(status=VoucherStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_links(self, stake_ids: list[int] | None = None) -> dict[int, LinkedVoucher]:
        """
        Load voucher links of entries.

        Args:
            stake_ids: Restrict to these entries, all linked entries if None

        Returns:
            Mapping entry id -> LinkedVoucher; entries without a used
            voucher are absent
        """
        stmt = (
            select(Voucher.id, Voucher.applied_to_stake_id, Voucher.roi_end_date)
            .where(Voucher.status == VoucherStatus.USED.value)
            .where(Voucher.applied_to_stake_id.is_not(None))
            .where(Voucher.roi_end_date.is_not(None))
        )
        if stake_ids is not None:
            if not stake_ids:
                return {}
            stmt = stmt.where(Voucher.applied_to_stake_id.in_(stake_ids))
        result = await self.session.execute(stmt)
        return {
            stake_id: LinkedVoucher(voucher_id=voucher_id, roi_end_date=roi_end)
            for voucher_id, stake_id, roi_end in result.all()
        }

    async def get_link(self, stake_id: int) -> VoucherLink:
        """Resolve the voucher link of one entry."""
        links = await self.get_links([stake_id])
        return links.get(stake_id, NO_VOUCHER)
