"""
TransactionRecord model.

Audit line for every wallet movement.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, UTCDateTime


class TransactionRecord(Base):
    """Wallet movement record."""

    __tablename__ = "transaction_records"
    __table_args__ = (Index("idx_transaction_records_user_type", "user_id", "type"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    stake_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    voucher_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TransactionRecord(user_id={self.user_id}, type={self.type}, "
            f"amount={self.amount})>"
        )
