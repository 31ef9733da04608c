"""
Dramatiq actors.

Importing this package registers the actors on the configured broker.
"""

from jobs.broker import broker  # noqa: F401
from jobs.tasks.distribution import (
    distribute_daily_roi,
    distribute_team_earnings,
    reconcile_voucher_expiry,
)

__all__ = [
    "distribute_daily_roi",
    "distribute_team_earnings",
    "reconcile_voucher_expiry",
]
