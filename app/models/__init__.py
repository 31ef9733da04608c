"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    ON_STAKE_STATUSES,
    StakeStatus,
    TransactionType,
    VoucherStatus,
    VoucherType,
)
from app.models.invited_member import InvitedMember
from app.models.promotion import PromotionMilestoneClaim, PromotionRegistration
from app.models.staking_entry import StakingEntry
from app.models.team_earning_record import TeamEarningRecord
from app.models.transaction_record import TransactionRecord
from app.models.user_balance import UserBalance
from app.models.voucher import Voucher

__all__ = [
    "Base",
    "InvitedMember",
    "ON_STAKE_STATUSES",
    "PromotionMilestoneClaim",
    "PromotionRegistration",
    "StakeStatus",
    "StakingEntry",
    "TeamEarningRecord",
    "TransactionRecord",
    "TransactionType",
    "UserBalance",
    "Voucher",
    "VoucherStatus",
    "VoucherType",
]
