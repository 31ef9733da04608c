"""
Earning calculator.

Encapsulates the ROI arithmetic of staking entries: daily credit, cap and
clamping to the remaining cap.
"""

from decimal import Decimal

from loguru import logger

from app.config.staking_packages import calculate_daily_earning, calculate_max_earning
from app.models.staking_entry import StakingEntry


class EarningCalculator:
    """
    Calculator for staking entry earnings.

    Stateless; every method returns Decimal("0") instead of raising on
    invalid input and logs a warning.
    """

    def calculate_daily_credit(self, amount: Decimal, daily_roi: Decimal) -> Decimal:
        """
        Calculate one day of ROI.

        Formula: amount * daily_roi / 100

        Args:
            amount: Staked amount
            daily_roi: Percent per day

        Returns:
            Daily credit

        Example:
            >>> EarningCalculator().calculate_daily_credit(Decimal("100"), Decimal("1.0"))
            Decimal('1.00')
        """
        if amount <= 0:
            logger.warning(
                "Invalid amount for daily credit calculation",
                extra={"amount": str(amount)},
            )
            return Decimal("0")

        if daily_roi < 0:
            logger.warning(
                "Invalid daily ROI for daily credit calculation",
                extra={"daily_roi": str(daily_roi)},
            )
            return Decimal("0")

        return calculate_daily_earning(amount, daily_roi)

    def calculate_max_earning(self, amount: Decimal, cap: Decimal) -> Decimal:
        """
        Calculate lifetime earning ceiling.

        Formula: amount * cap

        Args:
            amount: Staked amount
            cap: Cap multiplier (1.8 means 180% of amount)

        Returns:
            Max earning
        """
        if amount <= 0 or cap < 0:
            logger.warning(
                "Invalid input for max earning calculation",
                extra={"amount": str(amount), "cap": str(cap)},
            )
            return Decimal("0")

        return calculate_max_earning(amount, cap)

    def calculate_remaining_cap(self, entry: StakingEntry) -> Decimal:
        """Remaining amount an entry can earn, never negative."""
        earned = entry.total_earned or Decimal("0")
        return max(entry.max_earning - earned, Decimal("0"))

    def is_cap_reached(self, entry: StakingEntry) -> bool:
        """Check if entry has earned its full max_earning."""
        return self.calculate_remaining_cap(entry) <= 0

    def cap_credit_to_remaining(self, credit: Decimal, entry: StakingEntry) -> Decimal:
        """
        Clamp a credit to what the entry can still earn.

        Args:
            credit: Uncapped credit
            entry: Staking entry

        Returns:
            min(credit, remaining cap), never negative
        """
        if credit <= 0:
            return Decimal("0")

        remaining = self.calculate_remaining_cap(entry)
        if credit > remaining:
            logger.debug(
                "Credit capped to remaining earning",
                extra={
                    "entry_id": entry.id,
                    "credit": str(credit),
                    "remaining": str(remaining),
                },
            )
            return remaining
        return credit

    def calculate_daily_entry_credit(self, entry: StakingEntry) -> tuple[Decimal, Decimal]:
        """
        Daily credit for an entry, clamped to its remaining cap.

        Returns:
            (credit, overflow) where overflow is the part of the raw daily
            credit that did not fit under the cap
        """
        raw = self.calculate_daily_credit(entry.amount, entry.daily_roi)
        credit = self.cap_credit_to_remaining(raw, entry)
        return credit, max(raw - credit, Decimal("0"))
