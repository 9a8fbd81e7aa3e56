"""
Deadlines and cancellation for bounded async operations.

A Deadline is a time budget shared by everything one request does: the
backoff waits of a retried call and the in-flight data source calls. It can
also be cancelled explicitly. Either way, work running under it is aborted
and the caller gets an OperationCancelledError.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from shared.errors import OperationCancelledError

T = TypeVar("T")


class Deadline:
    """Absolute time budget with an explicit cancel switch."""

    def __init__(self, timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at: Optional[float] = None if timeout is None else clock() + timeout
        self._cancelled = asyncio.Event()
        self._reason: Optional[str] = None

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        """Deadline that expires ``seconds`` from now."""
        return cls(timeout=seconds)

    def remaining(self) -> Optional[float]:
        """Seconds left, or None for an unbounded deadline."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - self._clock())

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return self.cancelled or (remaining is not None and remaining <= 0)

    def cancel(self, reason: str = "cancelled by caller"):
        """Abort everything running under this deadline."""
        self._reason = reason
        self._cancelled.set()

    def reason(self) -> str:
        if self._reason is not None:
            return self._reason
        return "deadline exceeded"

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the deadline fires first.

        The awaitable is cancelled when the deadline expires or ``cancel()`` is
        called, and OperationCancelledError is raised in its place.
        """
        if self.expired:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError(self.reason())

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
            await asyncio.gather(waiter, return_exceptions=True)

        if task in done:
            return task.result()

        # Let the aborted call unwind before reporting.
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelledError(self.reason())


async def run_bounded(awaitable: Awaitable[Any], deadline: Optional[Deadline]) -> Any:
    """Await under ``deadline`` when one is given."""
    if deadline is None:
        return await awaitable
    return await deadline.run(awaitable)
