"""Per-operation deadlines for catalog queries.

Fan-out operations issue one storage call per child row, so their
latency grows with data shape. A ``Deadline`` is created when an operation
starts and is checked before each storage round trip; concurrent batches
are awaited with the remaining budget.
"""

import asyncio
import inspect
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import NoReturn, TypeVar

import structlog

from storefront.catalog.exceptions import QueryDeadlineExceededError

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Deadline:
    """Monotonic point in time after which an operation must stop.

    Attributes:
        operation: Name used in errors and logs.
        timeout_seconds: Total budget, or None for no limit.
        expires_at: ``time.monotonic()`` value at which the budget runs out.
    """

    operation: str
    timeout_seconds: float | None
    expires_at: float | None

    @classmethod
    def start(cls, operation: str, timeout_seconds: float | None) -> "Deadline":
        """Start a deadline for an operation.

        Args:
            operation: Operation name.
            timeout_seconds: Budget in seconds; None disables the deadline.

        Returns:
            New deadline.
        """
        expires_at = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )
        return cls(operation=operation, timeout_seconds=timeout_seconds, expires_at=expires_at)

    @property
    def remaining(self) -> float | None:
        """Seconds left, or None when unbounded."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise if the deadline has passed.

        Raises:
            QueryDeadlineExceededError: If no time is left.
        """
        if self.expired:
            self._fail()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await with the remaining budget.

        Args:
            awaitable: Coroutine or future to await.

        Returns:
            Result of the awaitable.

        Raises:
            QueryDeadlineExceededError: If the budget runs out first.
        """
        if self.expired:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            elif isinstance(awaitable, asyncio.Future):
                awaitable.cancel()
            self._fail()
        try:
            return await asyncio.wait_for(awaitable, timeout=self.remaining)
        except asyncio.TimeoutError as e:
            self._fail(e)

    def _fail(self, cause: BaseException | None = None) -> NoReturn:
        logger.warning(
            "Catalog query deadline exceeded",
            operation=self.operation,
            timeout_seconds=self.timeout_seconds,
        )
        raise QueryDeadlineExceededError(
            self.operation, self.timeout_seconds or 0.0
        ) from cause
