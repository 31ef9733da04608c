"""
Pre-launch promotion reward tables.

Package purchase rewards and team milestones. Milestone entries are plain
mappings so they can be edited without code changes; the evaluator in
app.services.promotion.rewards treats incomplete entries as unsatisfied.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, NamedTuple


class PromotionType(str, Enum):
    """Promotion programs."""

    PRELAUNCH = "prelaunch"


class PackageReward(NamedTuple):
    """Voucher granted for buying a package during the promotion."""

    value: Decimal
    roi_validity_days: int
    affects_max_cap: bool


PACKAGE_REWARDS: dict[int, PackageReward] = {
    0: PackageReward(Decimal("10"), 14, False),
    1: PackageReward(Decimal("15"), 30, True),
    2: PackageReward(Decimal("30"), 30, True),
    3: PackageReward(Decimal("50"), 30, True),
    4: PackageReward(Decimal("100"), 30, True),
    5: PackageReward(Decimal("150"), 30, True),
    6: PackageReward(Decimal("200"), 30, True),
    7: PackageReward(Decimal("250"), 30, True),
    8: PackageReward(Decimal("300"), 30, True),
}


# Milestone keys keep the names used in stored claims
INVITE_3_ALL_ACTIVATED = "invite3AllActivated"
INVITE_5_ALL_TRIAL = "invite5AllTrial"
INVITE_10_ALL_ACTIVATED = "invite10AllActivated"
INVITE_10_SILVER_FOCUS = "invite10SilverFocus"

TEAM_MILESTONES: dict[str, dict[str, Any]] = {
    INVITE_3_ALL_ACTIVATED: {
        "threshold": 3,
        "package": {
            "value": Decimal("15"),
            "roi_validity_days": 30,
            "affects_max_cap": False,
        },
    },
    INVITE_5_ALL_TRIAL: {
        "threshold": 5,
        "requires_package_id": 0,
        "withdraw": {"value": Decimal("5")},
    },
    INVITE_10_ALL_ACTIVATED: {
        "threshold": 10,
        "withdraw": {"value": Decimal("25")},
        "package": {
            "value": Decimal("20"),
            "roi_validity_days": 30,
            "affects_max_cap": True,
        },
    },
    INVITE_10_SILVER_FOCUS: {
        "threshold": 10,
        "min_silver_count": 5,
        "withdraw": {"value": Decimal("50")},
        "package": {
            "value": Decimal("30"),
            "roi_validity_days": 30,
            "affects_max_cap": True,
        },
    },
}


def get_package_reward(package_id: int | None) -> PackageReward | None:
    """Get promotion reward for a package purchase, None if not listed."""
    if package_id is None:
        return None
    return PACKAGE_REWARDS.get(package_id)
