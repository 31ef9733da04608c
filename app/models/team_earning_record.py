"""
TeamEarningRecord model.

Breakdown of a sponsor's team credit by contributing downline member.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, UTCDateTime


class TeamEarningRecord(Base):
    """One downline contribution to a sponsor's team earning."""

    __tablename__ = "team_earning_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sponsor_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    source_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    period_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
    )
