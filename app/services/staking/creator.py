"""
Staking entry creator module.

Validates stake amounts against the package catalog and opens entries with
the package terms snapshotted.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.staking_packages import (
    StakingPackage,
    find_package_for_amount,
    is_whole_amount,
)
from app.models.enums import StakeStatus
from app.models.staking_entry import StakingEntry
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.services.staking.calculator import EarningCalculator
from app.utils.exceptions import ValidationError


def validate_stake_amount(amount: Decimal | int | str) -> tuple[Decimal, StakingPackage]:
    """
    Validate a stake amount and resolve its package.

    Args:
        amount: Requested stake amount

    Returns:
        Tuple of (amount as Decimal, matching package)

    Raises:
        ValidationError: If amount is not positive, not whole or matches
            no package
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Invalid stake amount: {amount!r}") from e

    if not value.is_finite() or value <= 0:
        raise ValidationError("Stake amount must be positive")

    if not is_whole_amount(value):
        raise ValidationError("Stake amount must be a whole number")

    package = find_package_for_amount(value)
    if package is None:
        logger.debug("Amount matches no package", extra={"amount": str(value)})
        raise ValidationError(f"No staking package for amount {value}")

    return value, package


class StakeCreator:
    """Opens staking entries. Never commits."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake creator."""
        self.session = session
        self.entry_repo = StakingEntryRepository(session)
        self.calculator = EarningCalculator()

    async def open_entry(
        self,
        user_id: str,
        amount: Decimal,
        package: StakingPackage,
        start_date: datetime,
        package_name: str | None = None,
        counts_toward_cap: bool = True,
    ) -> StakingEntry:
        """
        Create an active entry with the package terms.

        Args:
            user_id: Owner
            amount: Staked amount
            package: Package providing ROI and cap
            start_date: Creation time
            package_name: Name override (voucher positions)
            counts_toward_cap: Whether earnings count toward the wallet cap

        Returns:
            Flushed entry with id
        """
        max_earning = self.calculator.calculate_max_earning(amount, package.cap)

        entry = await self.entry_repo.create(
            user_id=user_id,
            package_id=package.id,
            package_name=package_name or package.name,
            amount=amount,
            daily_roi=package.daily_roi,
            cap=package.cap,
            max_earning=max_earning,
            total_earned=Decimal("0"),
            counts_toward_cap=counts_toward_cap,
            status=StakeStatus.ACTIVE.value,
            start_date=start_date,
            created_at=start_date,
            updated_at=start_date,
        )

        logger.info(
            f"Staking entry {entry.id} opened",
            extra={
                "entry_id": entry.id,
                "user_id": user_id,
                "package": entry.package_name,
                "amount": str(amount),
                "max_earning": str(max_earning),
            },
        )
        return entry
