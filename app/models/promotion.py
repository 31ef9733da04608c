"""
Promotion models.

Registration in a promotion and the set of team milestones already granted.
"""

from datetime import UTC, datetime

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import UTCDateTime


class PromotionRegistration(Base):
    """User registration; registered_at opens the promotion window."""

    __tablename__ = "promotion_registrations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    promotion_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="prelaunch"
    )
    registered_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)


class PromotionMilestoneClaim(Base):
    """Team milestone granted to a sponsor. At most one row per milestone."""

    __tablename__ = "promotion_milestone_claims"
    __table_args__ = (
        UniqueConstraint(
            "sponsor_id", "milestone_key", name="uq_milestone_claim_sponsor_key"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sponsor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    milestone_key: Mapped[str] = mapped_column(String(64), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
    )
