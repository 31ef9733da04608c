"""
Promotion repository.

Data access for promotion registrations and claimed team milestones.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.promotion import PromotionMilestoneClaim, PromotionRegistration
from app.repositories.base import BaseRepository


class PromotionRegistrationRepository(BaseRepository[PromotionRegistration]):
    """Promotion registration repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize promotion registration repository."""
        super().__init__(PromotionRegistration, session)

    async def get_by_user_id(self, user_id: str) -> PromotionRegistration | None:
        """Get registration of a user."""
        return await self.get_by(user_id=user_id)


class MilestoneClaimRepository(BaseRepository[PromotionMilestoneClaim]):
    """Claimed team milestone repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize milestone claim repository."""
        super().__init__(PromotionMilestoneClaim, session)

    async def get_claimed_keys(self, sponsor_id: str) -> set[str]:
        """Get milestone keys already granted to a sponsor."""
        stmt = select(PromotionMilestoneClaim.milestone_key).where(
            PromotionMilestoneClaim.sponsor_id == sponsor_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())
