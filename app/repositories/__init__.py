"""
Repositories.

Data access layer. Repositories flush but never commit.
"""

from app.repositories.base import BaseRepository
from app.repositories.invited_member_repository import InvitedMemberRepository
from app.repositories.promotion_repository import (
    MilestoneClaimRepository,
    PromotionRegistrationRepository,
)
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import (
    TeamEarningRecordRepository,
    TransactionRecordRepository,
)
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import (
    NO_VOUCHER,
    LinkedVoucher,
    NoVoucher,
    VoucherLink,
    VoucherRepository,
)

__all__ = [
    "BaseRepository",
    "InvitedMemberRepository",
    "LinkedVoucher",
    "MilestoneClaimRepository",
    "NO_VOUCHER",
    "NoVoucher",
    "PromotionRegistrationRepository",
    "StakingEntryRepository",
    "TeamEarningRecordRepository",
    "TransactionRecordRepository",
    "UserBalanceRepository",
    "VoucherLink",
    "VoucherRepository",
]
