"""
Transaction record repository.

Append-only audit log of wallet movements and team earning breakdowns.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TransactionType
from app.models.team_earning_record import TeamEarningRecord
from app.models.transaction_record import TransactionRecord
from app.repositories.base import BaseRepository


class TransactionRecordRepository(BaseRepository[TransactionRecord]):
    """Wallet movement log."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction record repository."""
        super().__init__(TransactionRecord, session)

    async def record(
        self,
        user_id: str,
        type: TransactionType,
        amount: Decimal,
        description: str | None = None,
        stake_id: int | None = None,
        voucher_id: int | None = None,
    ) -> TransactionRecord:
        """Append a movement record."""
        return await self.create(
            user_id=user_id,
            type=type.value,
            amount=amount,
            description=description,
            stake_id=stake_id,
            voucher_id=voucher_id,
        )

    async def sum_by_type(self, user_id: str, type: TransactionType) -> Decimal:
        """Total amount of one movement type for a user."""
        stmt = select(func.coalesce(func.sum(TransactionRecord.amount), 0)).where(
            TransactionRecord.user_id == user_id,
            TransactionRecord.type == type.value,
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))


class TeamEarningRecordRepository(BaseRepository[TeamEarningRecord]):
    """Team earning breakdown log."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize team earning record repository."""
        super().__init__(TeamEarningRecord, session)

    async def get_for_sponsor(
        self, sponsor_id: str, period_date: date
    ) -> list[TeamEarningRecord]:
        """Get contributions credited to a sponsor for a day."""
        return await self.find_by(sponsor_id=sponsor_id, period_date=period_date)
