"""
Voucher model.

Promotional voucher: either a temporary staking position (package) or a
direct wallet credit (withdraw).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import VoucherStatus
from app.models.types import MoneyType, UTCDateTime


class Voucher(Base):
    """
    Voucher entity.

    Attributes:
        id: Primary key
        user_id: Owner, None until the code is redeemed
        code: Unique redemption code (V-XXXX-XXXX)
        type: package or withdraw
        status: active, used or expired
        value: Nominal value
        package_id: Package whose ROI terms a package voucher uses
        roi_validity_days: ROI window of the resulting position
        affects_max_cap: Whether position earnings count toward the wallet cap
        expires_at: Redemption deadline
        applied_to_stake_id: Entry opened from this voucher
        used_at: Consumption time
        roi_end_date: End of the ROI window (used_at + roi_validity_days)
    """

    __tablename__ = "vouchers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VoucherStatus.ACTIVE.value, index=True
    )

    value: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="USDT")
    title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    package_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    roi_validity_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    affects_max_cap: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    applied_to_stake_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    roi_end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Voucher(id={self.id}, code={self.code}, type={self.type}, "
            f"status={self.status}, value={self.value})>"
        )

    def is_expired(self, now: datetime) -> bool:
        """Check if the redemption deadline has passed."""
        return self.expires_at is not None and self.expires_at <= now
