"""
Model enumerations.

Stored as plain strings in the database.
"""

from enum import StrEnum


class StakeStatus(StrEnum):
    """Staking entry lifecycle status."""

    ACTIVE = "active"
    UNSTAKING = "unstaking"  # Waiting for cooldown before principal release
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still accrue ROI and count as "on stake"
ON_STAKE_STATUSES = (StakeStatus.ACTIVE, StakeStatus.UNSTAKING)


class VoucherType(StrEnum):
    """Voucher kind."""

    PACKAGE = "package"  # Opens a temporary staking position
    WITHDRAW = "withdraw"  # Credited to wallet balance on redemption


class VoucherStatus(StrEnum):
    """Voucher lifecycle status."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class TransactionType(StrEnum):
    """Wallet movement types for the audit log."""

    STAKE = "stake"
    UNSTAKE_RETURN = "unstake_return"
    DAILY_REWARD = "daily_reward"
    TEAM_REWARD = "team_reward"
    DIRECT_BONUS = "direct_bonus"
    VOUCHER_CREDIT = "voucher_credit"
