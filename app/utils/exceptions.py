"""
Exception types.

Every error raised by the staking core derives from StakingError so callers
can tell domain failures from infrastructure failures.
"""


class StakingError(Exception):
    """Base class for staking domain errors."""

    pass


class ValidationError(StakingError):
    """Input rejected before anything was written."""

    pass


class NotFoundError(StakingError):
    """Stake or voucher missing, or not owned by the caller."""

    pass


class InvalidStatusTransitionError(StakingError):
    """Illegal staking entry status change."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move staking entry from {current} to {target}")


class UnauthorizedError(StakingError):
    """Scheduled trigger presented a missing or wrong secret."""

    pass
