"""
Standard type definitions for database models.

Provides consistent types for monetary, percentage and timestamp fields
across all models.
"""

from datetime import UTC, datetime

from sqlalchemy import DECIMAL, DateTime
from sqlalchemy.types import TypeDecorator

# Standard money type for amounts, balances, rewards
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Daily ROI percentages and cap multipliers
# Precision: 10 digits total, 4 after decimal point (e.g. 0.8000%, 1.5000x)
RatePercentType = DECIMAL(10, 4)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    Backends without native timezone support (SQLite) return naive values;
    those are read back as UTC so comparisons with utc_now() stay valid.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if value is not None:
            value = value.astimezone(UTC)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value
