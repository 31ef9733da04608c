"""
Staking package catalog.

Fixed, ordered tier table. A stake amount selects its tier by exact match;
the tier's ROI and cap are snapshotted onto the entry at creation time.
"""

from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from loguru import logger


class StakingPackage(NamedTuple):
    """Staking tier configuration."""

    id: int
    name: str
    amount: Decimal
    daily_roi: Decimal  # percent per day
    cap: Decimal  # max earning multiplier
    lock_days: int = 30


STAKING_PACKAGES: tuple[StakingPackage, ...] = (
    StakingPackage(0, "Trial", Decimal("10"), Decimal("0.8"), Decimal("1.5"), lock_days=14),
    StakingPackage(1, "Bronze", Decimal("100"), Decimal("1.0"), Decimal("1.8")),
    StakingPackage(2, "Silver", Decimal("250"), Decimal("1.1"), Decimal("2.0")),
    StakingPackage(3, "Gold", Decimal("500"), Decimal("1.2"), Decimal("2.3")),
    StakingPackage(4, "Platinum", Decimal("1000"), Decimal("1.3"), Decimal("2.5")),
    StakingPackage(5, "Diamond", Decimal("2500"), Decimal("1.4"), Decimal("3.0")),
    StakingPackage(6, "Titan", Decimal("5000"), Decimal("1.5"), Decimal("3.5")),
    StakingPackage(7, "Crown", Decimal("10000"), Decimal("1.6"), Decimal("4.0")),
    StakingPackage(8, "Elysium Vault", Decimal("25000"), Decimal("1.7"), Decimal("5.0")),
)

TRIAL_PACKAGE_ID = 0
SILVER_PACKAGE_ID = 2


def _to_decimal(value: Decimal | int | str | float) -> Decimal | None:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def is_whole_amount(amount: Decimal | int | str | float) -> bool:
    """Check that amount is a finite whole number of currency units."""
    value = _to_decimal(amount)
    if value is None or not value.is_finite():
        return False
    return value == value.to_integral_value()


def find_package_for_amount(
    amount: Decimal | int | str | float,
) -> StakingPackage | None:
    """
    Find the tier whose deposit amount equals the given amount.

    Args:
        amount: Stake amount

    Returns:
        Matching package, or None for non-positive, fractional
        or unlisted amounts
    """
    value = _to_decimal(amount)
    if value is None or not value.is_finite() or value <= 0:
        return None
    if not is_whole_amount(value):
        return None

    for package in STAKING_PACKAGES:
        if package.amount == value:
            return package
    return None


def get_package(package_id: int | None) -> StakingPackage | None:
    """Get package by id."""
    if package_id is None:
        return None
    for package in STAKING_PACKAGES:
        if package.id == package_id:
            return package
    return None


def get_package_by_name(name: str) -> StakingPackage | None:
    """Get package by name (case-insensitive)."""
    wanted = name.strip().lower()
    for package in STAKING_PACKAGES:
        if package.name.lower() == wanted:
            return package
    return None


def calculate_daily_earning(amount: Decimal, daily_roi: Decimal) -> Decimal:
    """
    Calculate one day of ROI.

    Args:
        amount: Staked amount
        daily_roi: Percent per day (1.0 means 1%)

    Returns:
        amount * daily_roi / 100
    """
    return amount * daily_roi / Decimal("100")


def calculate_max_earning(amount: Decimal, cap: Decimal) -> Decimal:
    """Calculate lifetime earning ceiling (amount * cap)."""
    return amount * cap


def is_cap_reached(total_earned: Decimal, max_earning: Decimal) -> bool:
    """Check if an entry has earned its full ceiling."""
    if max_earning <= 0:
        logger.warning(
            "Non-positive max_earning treated as reached",
            extra={"max_earning": str(max_earning)},
        )
        return True
    return total_earned >= max_earning
