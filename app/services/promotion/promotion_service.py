"""
Promotion service.

Pre-launch promotion: registration, package purchase rewards and team
milestone rewards. Grants run in their own unit of work after the stake
that triggered them is committed; a failed grant is rolled back and
logged without affecting the stake.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.promotion_rewards import TEAM_MILESTONES, PromotionType, get_package_reward
from app.config.settings import settings
from app.config.staking_packages import get_package
from app.models.enums import StakeStatus, VoucherType
from app.models.promotion import PromotionRegistration
from app.models.voucher import Voucher
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.promotion_repository import (
    MilestoneClaimRepository,
    PromotionRegistrationRepository,
)
from app.services.base_service import BaseService, transaction
from app.services.promotion.rewards import (
    build_activity,
    evaluate_milestones,
    is_within_window,
    promotion_window_end,
)
from app.services.voucher.voucher_service import VoucherService
from app.utils.datetime_utils import Clock

PROMOTION_LABEL = "Pre-Launch Promotion"


@dataclass
class PromotionStatus:
    """Promotion state of a user."""

    user_id: str
    registered: bool
    active: bool
    registered_at: datetime | None = None
    ends_at: datetime | None = None
    claimed_milestones: tuple[str, ...] = ()


class PromotionService(BaseService):
    """Pre-launch promotion operations."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        window_days: int | None = None,
    ) -> None:
        """Initialize promotion service."""
        super().__init__(session, clock)
        self.window_days = window_days or settings.promotion_window_days
        self.registration_repo = PromotionRegistrationRepository(session)
        self.claim_repo = MilestoneClaimRepository(session)
        self.invited_repo = InvitedMemberRepository(session)
        self.voucher_service = VoucherService(session, self.clock)

    @transaction
    async def register_for_promotion(
        self, user_id: str, promotion_type: PromotionType = PromotionType.PRELAUNCH
    ) -> PromotionRegistration:
        """Register user; returns the existing registration if already registered."""
        registration = await self.registration_repo.get_by_user_id(user_id)
        if registration is not None:
            return registration

        registration = await self.registration_repo.create(
            user_id=user_id,
            promotion_type=promotion_type.value,
            registered_at=self.clock.now(),
        )
        self.logger.info(
            f"User {user_id} registered for {promotion_type.value} promotion",
            extra={"user_id": user_id},
        )
        return registration

    async def get_promotion_status(self, user_id: str) -> PromotionStatus:
        """Get registration and window state of a user."""
        registration = await self.registration_repo.get_by_user_id(user_id)
        if registration is None:
            return PromotionStatus(user_id=user_id, registered=False, active=False)

        claimed = await self.claim_repo.get_claimed_keys(user_id)
        return PromotionStatus(
            user_id=user_id,
            registered=True,
            active=is_within_window(
                registration.registered_at, self.clock.now(), self.window_days
            ),
            registered_at=registration.registered_at,
            ends_at=promotion_window_end(registration.registered_at, self.window_days),
            claimed_milestones=tuple(sorted(claimed)),
        )

    async def _active_registration(self, user_id: str) -> PromotionRegistration | None:
        registration = await self.registration_repo.get_by_user_id(user_id)
        if registration is None:
            return None
        if not is_within_window(registration.registered_at, self.clock.now(), self.window_days):
            self.logger.debug(
                "Promotion window closed",
                extra={"user_id": user_id, "registered_at": registration.registered_at.isoformat()},
            )
            return None
        return registration

    def _voucher_expiry(self) -> datetime:
        return self.clock.now() + timedelta(days=settings.voucher_expiry_days)

    async def grant_package_purchase_reward(
        self, user_id: str, package_id: int | None, stake_id: int
    ) -> Voucher | None:
        """
        Grant the package voucher for a purchase made inside the window.

        Args:
            user_id: Buyer
            package_id: Purchased package
            stake_id: Entry that triggered the reward

        Returns:
            Issued voucher, or None when nothing was granted
        """
        try:
            registration = await self._active_registration(user_id)
            reward = get_package_reward(package_id)
            package = get_package(package_id)
            if registration is None or reward is None or package is None:
                return None

            vouchers = await self.voucher_service.issue_vouchers(
                1,
                VoucherType.PACKAGE,
                reward.value,
                user_id=user_id,
                package_id=package.id,
                roi_validity_days=reward.roi_validity_days,
                affects_max_cap=reward.affects_max_cap,
                expires_at=self._voucher_expiry(),
                title=f"${reward.value} {package.name} Purchase Reward",
                description=f"{PROMOTION_LABEL}: {package.name} Package Purchase",
            )
            await self.commit()
        except Exception as e:
            await self.rollback()
            self.logger.exception(
                "Failed to grant package purchase reward",
                extra={"user_id": user_id, "stake_id": stake_id, "error": str(e)},
            )
            return None

        self.logger.info(
            f"Package purchase reward granted to {user_id}",
            extra={"user_id": user_id, "stake_id": stake_id, "value": str(reward.value)},
        )
        return vouchers[0]

    async def check_and_grant_team_rewards(self, sponsor_id: str) -> list[str]:
        """
        Grant every newly satisfied team milestone of a sponsor.

        Activations count invitees with an active stake opened at or after
        the sponsor's registration. Each milestone is granted at most once.

        Returns:
            Keys of milestones granted by this call
        """
        try:
            registration = await self._active_registration(sponsor_id)
            if registration is None:
                return []

            rows = await self.invited_repo.get_invitee_stakes(
                sponsor_id, since=registration.registered_at
            )
            activity = build_activity(
                (invitee_id, package_id)
                for invitee_id, package_id, status in rows
                if status == StakeStatus.ACTIVE.value
            )
            claimed = await self.claim_repo.get_claimed_keys(sponsor_id)
            earned = evaluate_milestones(TEAM_MILESTONES, activity, claimed)
            if not earned:
                return []

            expires_at = self._voucher_expiry()
            for key, grants in earned.items():
                for grant in grants:
                    await self.voucher_service.issue_vouchers(
                        1,
                        grant.voucher_type,
                        grant.value,
                        user_id=sponsor_id,
                        roi_validity_days=grant.roi_validity_days,
                        affects_max_cap=grant.affects_max_cap,
                        expires_at=expires_at,
                        title=f"${grant.value} Team Reward",
                        description=f"{PROMOTION_LABEL}: {key}",
                    )
                await self.claim_repo.create(
                    sponsor_id=sponsor_id, milestone_key=key, claimed_at=self.clock.now()
                )
            await self.commit()
        except Exception as e:
            await self.rollback()
            self.logger.exception(
                "Failed to grant team rewards",
                extra={"sponsor_id": sponsor_id, "error": str(e)},
            )
            return []

        granted = sorted(earned)
        self.logger.info(
            f"Team milestones granted to {sponsor_id}: {', '.join(granted)}",
            extra={"sponsor_id": sponsor_id, "milestones": granted},
        )
        return granted
