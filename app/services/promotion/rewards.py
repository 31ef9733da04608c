"""
Promotion reward rules.

Pure evaluation of the promotion window and the team milestones over an
invitee activity snapshot. No database access.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from loguru import logger

from app.config.staking_packages import SILVER_PACKAGE_ID
from app.models.enums import VoucherType


@dataclass(frozen=True)
class InviteeActivity:
    """Activated invitees of a sponsor and the packages they hold."""

    packages_by_invitee: Mapping[str, frozenset[int]] = field(default_factory=dict)

    @property
    def activated_count(self) -> int:
        return len(self.packages_by_invitee)

    def count_holding(self, package_id: int) -> int:
        """Invitees holding exactly this package."""
        return sum(1 for packages in self.packages_by_invitee.values() if package_id in packages)

    def count_at_least(self, package_id: int) -> int:
        """Invitees holding this package or a higher one."""
        return sum(
            1
            for packages in self.packages_by_invitee.values()
            if any(p >= package_id for p in packages)
        )


@dataclass(frozen=True)
class VoucherGrant:
    """One voucher to issue for a satisfied milestone."""

    voucher_type: VoucherType
    value: Decimal
    roi_validity_days: int | None = None
    affects_max_cap: bool = True


def build_activity(rows: Iterable[tuple[str, int | None]]) -> InviteeActivity:
    """
    Collapse (invitee_id, package_id) stake rows into per-invitee sets.

    Args:
        rows: One row per qualifying stake

    Returns:
        Activity snapshot; each invitee counted once
    """
    packages: dict[str, set[int]] = {}
    for invitee_id, package_id in rows:
        held = packages.setdefault(invitee_id, set())
        if package_id is not None:
            held.add(package_id)
    return InviteeActivity({k: frozenset(v) for k, v in packages.items()})


def promotion_window_end(registered_at: datetime, window_days: int) -> datetime:
    """End (exclusive) of a user's promotion window."""
    return registered_at + timedelta(days=window_days)


def is_within_window(registered_at: datetime, now: datetime, window_days: int) -> bool:
    """Check now in [registered_at, registered_at + window_days)."""
    return registered_at <= now < promotion_window_end(registered_at, window_days)


def is_milestone_satisfied(key: str, config: Mapping[str, Any], activity: InviteeActivity) -> bool:
    """
    Evaluate one team milestone.

    A malformed config (missing or non-numeric threshold) is reported and
    treated as not satisfied.
    """
    threshold = config.get("threshold")
    if not isinstance(threshold, int) or threshold <= 0:
        logger.warning(
            f"Milestone {key} has no valid threshold, skipping",
            extra={"milestone": key},
        )
        return False

    required_package = config.get("requires_package_id")
    if required_package is not None:
        if not isinstance(required_package, int):
            logger.warning(
                f"Milestone {key} has invalid requires_package_id, skipping",
                extra={"milestone": key},
            )
            return False
        return activity.count_holding(required_package) >= threshold

    if activity.activated_count < threshold:
        return False

    min_silver = config.get("min_silver_count")
    if min_silver is not None:
        if not isinstance(min_silver, int):
            logger.warning(
                f"Milestone {key} has invalid min_silver_count, skipping",
                extra={"milestone": key},
            )
            return False
        return activity.count_at_least(SILVER_PACKAGE_ID) >= min_silver

    return True


def milestone_grants(key: str, config: Mapping[str, Any]) -> list[VoucherGrant] | None:
    """
    Vouchers a milestone awards.

    Returns:
        Grants, or None if a reward sub-field is missing or malformed
    """
    grants: list[VoucherGrant] = []

    withdraw = config.get("withdraw")
    if withdraw is not None:
        value = withdraw.get("value") if isinstance(withdraw, Mapping) else None
        if not isinstance(value, Decimal) or value <= 0:
            logger.warning(f"Milestone {key} has malformed withdraw reward", extra={"milestone": key})
            return None
        grants.append(VoucherGrant(VoucherType.WITHDRAW, value))

    package = config.get("package")
    if package is not None:
        if not isinstance(package, Mapping):
            logger.warning(f"Milestone {key} has malformed package reward", extra={"milestone": key})
            return None
        value = package.get("value")
        days = package.get("roi_validity_days")
        affects = package.get("affects_max_cap")
        if (
            not isinstance(value, Decimal)
            or value <= 0
            or not isinstance(days, int)
            or not isinstance(affects, bool)
        ):
            logger.warning(f"Milestone {key} has malformed package reward", extra={"milestone": key})
            return None
        grants.append(VoucherGrant(VoucherType.PACKAGE, value, days, affects))

    if not grants:
        logger.warning(f"Milestone {key} awards nothing", extra={"milestone": key})
        return None
    return grants


def evaluate_milestones(
    milestones: Mapping[str, Mapping[str, Any]],
    activity: InviteeActivity,
    claimed: set[str],
) -> dict[str, list[VoucherGrant]]:
    """
    Evaluate every unclaimed milestone independently.

    Args:
        milestones: Milestone table
        activity: Invitee snapshot
        claimed: Keys already granted to the sponsor

    Returns:
        Mapping milestone key -> grants for newly satisfied milestones
    """
    earned: dict[str, list[VoucherGrant]] = {}
    for key, config in milestones.items():
        if key in claimed:
            continue
        if not isinstance(config, Mapping):
            logger.warning(f"Milestone {key} config is not a mapping", extra={"milestone": key})
            continue
        if not is_milestone_satisfied(key, config, activity):
            continue
        grants = milestone_grants(key, config)
        if grants:
            earned[key] = grants
    return earned
