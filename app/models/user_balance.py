"""
UserBalance model.

Per-user wallet. Created lazily on first credit or debit.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, UTCDateTime


def _money_column():
    return mapped_column(MoneyType, nullable=False, default=Decimal("0"))


class UserBalance(Base):
    """User wallet with staking and earning aggregates."""

    __tablename__ = "user_balances"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="check_user_balance_non_negative"),
        CheckConstraint("on_staking >= 0", name="check_user_on_staking_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    balance: Mapped[Decimal] = _money_column()
    on_staking: Mapped[Decimal] = _money_column()

    # Earnings of the current UTC day, reset on the first credit of a new day
    daily_earning: Mapped[Decimal] = _money_column()
    daily_earning_date: Mapped[date | None] = mapped_column(
        Date, nullable=True, index=True
    )
    latest_earning: Mapped[Decimal] = _money_column()

    team_earning: Mapped[Decimal] = _money_column()
    team_credited_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    missed_earnings: Mapped[Decimal] = _money_column()

    # Wallet-level cap tracking
    capped_earned: Mapped[Decimal] = _money_column()
    max_earn: Mapped[Decimal] = _money_column()

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
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
            f"<UserBalance(user_id={self.user_id}, balance={self.balance}, "
            f"on_staking={self.on_staking})>"
        )
