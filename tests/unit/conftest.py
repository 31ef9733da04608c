"""Fixtures for unit tests."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.models.enums import StakeStatus
from app.models.staking_entry import StakingEntry
from app.services.staking.calculator import EarningCalculator


@pytest.fixture
def calculator():
    """EarningCalculator instance."""
    return EarningCalculator()


@pytest.fixture
def bronze_entry():
    """Transient Bronze entry: 100 at 1% daily, 1.8x cap."""
    return StakingEntry(
        id=1,
        user_id="user-1",
        package_id=1,
        package_name="Bronze",
        amount=Decimal("100"),
        daily_roi=Decimal("1.0"),
        cap=Decimal("1.8"),
        max_earning=Decimal("180"),
        total_earned=Decimal("0"),
        counts_toward_cap=True,
        status=StakeStatus.ACTIVE.value,
        start_date=datetime(2026, 1, 1, tzinfo=UTC),
    )
