"""
Promotion services.
"""

from .promotion_service import PromotionService, PromotionStatus
from .rewards import InviteeActivity, VoucherGrant, evaluate_milestones, is_within_window

__all__ = [
    "InviteeActivity",
    "PromotionService",
    "PromotionStatus",
    "VoucherGrant",
    "evaluate_milestones",
    "is_within_window",
]
