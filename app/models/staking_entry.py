"""
StakingEntry model.

One staked position: a fixed amount with the ROI terms of its package
snapshotted at creation.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import StakeStatus
from app.models.types import MoneyType, RatePercentType, UTCDateTime


class StakingEntry(Base):
    """Staking entry - a capped, daily-accruing position."""

    __tablename__ = "staking_entries"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_stake_amount_positive"),
        CheckConstraint(
            "total_earned >= 0", name="check_stake_total_earned_non_negative"
        ),
        CheckConstraint(
            "total_earned <= max_earning",
            name="check_stake_total_earned_not_exceeds_cap",
        ),
        Index("idx_staking_entries_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identity comes from the external provider
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Package snapshot
    package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    package_name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_roi: Mapped[Decimal] = mapped_column(RatePercentType, nullable=False)
    cap: Mapped[Decimal] = mapped_column(RatePercentType, nullable=False)
    max_earning: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Earnings
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    # False for voucher positions whose voucher does not affect the wallet cap
    counts_toward_cap: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    last_credited_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StakeStatus.ACTIVE.value, index=True
    )
    start_date: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    unstake_requested_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    cooldown_end_date: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StakingEntry(id={self.id}, user_id={self.user_id}, "
            f"package={self.package_name}, amount={self.amount}, "
            f"status={self.status})>"
        )

    @property
    def remaining_cap(self) -> Decimal:
        """Amount this entry can still earn."""
        return max(Decimal("0"), self.max_earning - self.total_earned)

    @property
    def is_on_stake(self) -> bool:
        """Check if entry still accrues ROI."""
        return self.status in (StakeStatus.ACTIVE, StakeStatus.UNSTAKING)
