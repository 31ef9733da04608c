"""
Leaderboard service.

Weekly invite leaderboard: the repository returns raw activation rows for
the window and the ranking module turns them into ranks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    LEADERBOARD_MIN_LIMIT,
    LEADERBOARD_MIN_PACKAGE_ID,
    LEADERBOARD_MIN_STAKE,
)
from app.config.settings import settings
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.services.base_service import BaseService
from app.services.leaderboard.ranking import (
    RankedSponsor,
    aggregate_scores,
    rank_of,
    rank_top,
)
from app.services.leaderboard.window import resolve_weekly_window
from app.utils.datetime_utils import Clock
from app.utils.exceptions import ValidationError


@dataclass
class MyRank:
    """Caller's own position."""

    user_id: str
    activated_invites: int
    rank: int | None


@dataclass
class Leaderboard:
    """Leaderboard response."""

    period: str
    start: datetime
    end: datetime
    min_stake: Decimal
    min_package_id: int
    top: list[RankedSponsor] = field(default_factory=list)
    me: MyRank | None = None
    reset_rule: str = ""


class LeaderboardService(BaseService):
    """Invite leaderboard queries."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """Initialize leaderboard service."""
        super().__init__(session, clock)
        self.invited_repo = InvitedMemberRepository(session)

    async def get_invite_leaderboard(
        self,
        user_id: str,
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
        min_stake: Decimal | int = LEADERBOARD_MIN_STAKE,
        min_package_id: int = LEADERBOARD_MIN_PACKAGE_ID,
    ) -> Leaderboard:
        """
        Rank sponsors by invitees activated in the current weekly window.

        An invitee is activated by a non-cancelled stake created in the
        window with package id >= min_package_id and amount >= min_stake.

        Args:
            user_id: Caller, whose own rank is returned in `me`
            limit: Size of the top list (5-100)
            min_stake: Minimum qualifying stake amount
            min_package_id: Minimum qualifying package id

        Returns:
            Leaderboard

        Raises:
            ValidationError: On out-of-range parameters
        """
        if not LEADERBOARD_MIN_LIMIT <= limit <= LEADERBOARD_MAX_LIMIT:
            raise ValidationError(
                f"limit must be between {LEADERBOARD_MIN_LIMIT} and {LEADERBOARD_MAX_LIMIT}"
            )
        min_stake = Decimal(str(min_stake))
        if min_stake < 0 or min_package_id < 0:
            raise ValidationError("min_stake and min_package_id must be non-negative")

        start, end = resolve_weekly_window(
            self.clock.now(),
            utc_offset_hours=settings.leaderboard_utc_offset_hours,
            reset_weekday=settings.leaderboard_reset_weekday,
            reset_hour=settings.leaderboard_reset_hour,
        )

        rows = await self.invited_repo.get_activation_rows(start, end, min_stake, min_package_id)
        scores = aggregate_scores(rows)
        activated, rank = rank_of(scores, user_id)

        return Leaderboard(
            period="weekly",
            start=start,
            end=end,
            min_stake=min_stake,
            min_package_id=min_package_id,
            top=rank_top(scores, limit),
            me=MyRank(user_id=user_id, activated_invites=activated, rank=rank),
            reset_rule=self._reset_rule(),
        )

    @staticmethod
    def _reset_rule() -> str:
        weekdays = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
        offset = settings.leaderboard_utc_offset_hours
        return (
            f"Weekly resets every {weekdays[settings.leaderboard_reset_weekday]} "
            f"{settings.leaderboard_reset_hour:02d}:00 UTC{offset:+d}"
        )
