"""
InvitedMember repository.

Read access to the referral graph.
"""

from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import StakeStatus
from app.models.invited_member import InvitedMember
from app.models.staking_entry import StakingEntry
from app.repositories.base import BaseRepository


class InvitedMemberRepository(BaseRepository[InvitedMember]):
    """Referral graph repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize invited member repository."""
        super().__init__(InvitedMember, session)

    async def get_sponsor_id(self, user_id: str) -> str | None:
        """Get direct sponsor of a user."""
        stmt = select(InvitedMember.sponsor_id).where(InvitedMember.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_upline(self, user_id: str, max_depth: int) -> list[str]:
        """
        Walk the sponsor chain upwards.

        Args:
            user_id: Starting user
            max_depth: Number of levels to walk

        Returns:
            Sponsor ids, index 0 is the direct sponsor
        """
        upline: list[str] = []
        seen = {user_id}
        current = user_id

        for _ in range(max_depth):
            sponsor_id = await self.get_sponsor_id(current)
            if sponsor_id is None:
                break
            if sponsor_id in seen:
                logger.warning(
                    "Referral cycle detected, stopping upline walk",
                    extra={"user_id": user_id, "sponsor_id": sponsor_id},
                )
                break
            upline.append(sponsor_id)
            seen.add(sponsor_id)
            current = sponsor_id

        return upline

    async def get_invitee_ids(self, sponsor_id: str) -> list[str]:
        """Get direct invitees of a sponsor."""
        stmt = (
            select(InvitedMember.user_id)
            .where(InvitedMember.sponsor_id == sponsor_id)
            .order_by(InvitedMember.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_invitee_stakes(
        self, sponsor_id: str, since: datetime | None = None
    ) -> list[tuple[str, int | None, str]]:
        """
        Get stakes opened by a sponsor's invitees.

        Args:
            sponsor_id: Sponsor ID
            since: Only stakes created at or after this time

        Returns:
            List of (invitee_id, package_id, status)
        """
        stmt = (
            select(StakingEntry.user_id, StakingEntry.package_id, StakingEntry.status)
            .join(InvitedMember, InvitedMember.user_id == StakingEntry.user_id)
            .where(InvitedMember.sponsor_id == sponsor_id)
            .order_by(StakingEntry.id)
        )
        if since is not None:
            stmt = stmt.where(StakingEntry.created_at >= since)
        result = await self.session.execute(stmt)
        return [(user_id, package_id, status) for user_id, package_id, status in result.all()]

    async def get_activation_rows(
        self,
        start: datetime,
        end: datetime,
        min_stake: Decimal,
        min_package_id: int,
    ) -> list[tuple[str, str, datetime]]:
        """
        Get qualifying invitee stakes inside a time window.

        A stake qualifies when it is not cancelled, its package id and
        amount meet the thresholds and it was created in [start, end).

        Returns:
            Raw (sponsor_id, invitee_id, created_at) rows
        """
        stmt = (
            select(InvitedMember.sponsor_id, InvitedMember.user_id, StakingEntry.created_at)
            .join(StakingEntry, StakingEntry.user_id == InvitedMember.user_id)
            .where(StakingEntry.status != StakeStatus.CANCELLED.value)
            .where(StakingEntry.package_id.is_not(None))
            .where(StakingEntry.package_id >= min_package_id)
            .where(StakingEntry.amount >= min_stake)
            .where(StakingEntry.created_at >= start)
            .where(StakingEntry.created_at < end)
        )
        result = await self.session.execute(stmt)
        return [(sponsor_id, invitee_id, created_at) for sponsor_id, invitee_id, created_at in result.all()]
