"""
Staking entry status manager.

Holds the entry state machine:

    active -> unstaking -> completed
    active -> completed
    active -> cancelled

Nothing leaves completed or cancelled.
"""

from datetime import datetime

from loguru import logger

from app.models.enums import StakeStatus
from app.models.staking_entry import StakingEntry
from app.utils.exceptions import InvalidStatusTransitionError

ALLOWED_TRANSITIONS: dict[StakeStatus, frozenset[StakeStatus]] = {
    StakeStatus.ACTIVE: frozenset(
        {StakeStatus.UNSTAKING, StakeStatus.COMPLETED, StakeStatus.CANCELLED}
    ),
    StakeStatus.UNSTAKING: frozenset({StakeStatus.COMPLETED}),
    StakeStatus.COMPLETED: frozenset(),
    StakeStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({StakeStatus.COMPLETED, StakeStatus.CANCELLED})


def can_transition(current: str | StakeStatus, target: str | StakeStatus) -> bool:
    """Check if current -> target is allowed."""
    try:
        current_status = StakeStatus(current)
        target_status = StakeStatus(target)
    except ValueError:
        return False
    return target_status in ALLOWED_TRANSITIONS[current_status]


class StakeStatusManager:
    """Applies status transitions to staking entries in the current session."""

    def transition(
        self,
        entry: StakingEntry,
        target: StakeStatus,
        at: datetime,
        end_date: datetime | None = None,
    ) -> StakingEntry:
        """
        Move entry to target status.

        Args:
            entry: Entry to update (not flushed here)
            target: New status
            at: Time of the change
            end_date: End date for terminal statuses, defaults to at

        Returns:
            The same entry

        Raises:
            InvalidStatusTransitionError: If the move is not allowed
        """
        if not can_transition(entry.status, target):
            raise InvalidStatusTransitionError(str(entry.status), target.value)

        entry.status = target.value
        if target in TERMINAL_STATUSES:
            entry.end_date = end_date or at

        logger.info(
            f"Staking entry {entry.id} moved to {target.value}",
            extra={"entry_id": entry.id, "user_id": entry.user_id, "status": target.value},
        )
        return entry

    def complete(
        self, entry: StakingEntry, at: datetime, end_date: datetime | None = None
    ) -> StakingEntry:
        """Mark entry completed (cap reached, voucher window over or unstaked)."""
        return self.transition(entry, StakeStatus.COMPLETED, at, end_date=end_date)

    def request_unstake(
        self, entry: StakingEntry, at: datetime, cooldown_end: datetime
    ) -> StakingEntry:
        """Start the unstake cooldown."""
        self.transition(entry, StakeStatus.UNSTAKING, at)
        entry.unstake_requested_at = at
        entry.cooldown_end_date = cooldown_end
        return entry

    def cancel(self, entry: StakingEntry, at: datetime, reason: str) -> StakingEntry:
        """Cancel an active entry."""
        self.transition(entry, StakeStatus.CANCELLED, at)
        logger.warning(
            f"Staking entry {entry.id} cancelled: {reason}",
            extra={"entry_id": entry.id, "reason": reason},
        )
        return entry
