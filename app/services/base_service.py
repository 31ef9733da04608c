"""
Base service class.

Provides session handling, bound logging, the clock and the transaction
decorator shared by all services.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.datetime_utils import Clock, system_clock
from app.utils.exceptions import StakingError

T = TypeVar("T")


class BaseService:
    """
    Base service class.

    A service owns its unit of work: repositories only flush, the service
    commits or rolls back.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
            clock: Time source, system UTC clock by default
        """
        self.session = session
        self.clock = clock or system_clock
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to run a service method as one unit of work.

    Commits on success, rolls back on any exception and re-raises it.
    Domain errors are logged as warnings, everything else with traceback.

    Usage:
        @transaction
        async def create_stake(self, user_id, amount):
            ...
    """

    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except StakingError as e:
            await self.rollback()
            self.logger.warning(
                f"{func.__name__} rejected: {e}",
                extra={"function": func.__name__, "error": str(e)},
            )
            raise
        except Exception as e:
            await self.rollback()
            self.logger.exception(
                f"Transaction failed in {func.__name__}",
                extra={"function": func.__name__, "error": str(e)},
            )
            raise

    return wrapper
