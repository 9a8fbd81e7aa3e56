"""
Retry mechanism for resilient data source calls.

Each attempt produces an explicit outcome (Success, Transient or Permanent)
and the retry loop is driven by that outcome, never by the type of a caught
exception. Deadline expiry and cancellation are not failures of the data
source: they abort immediately with OperationCancelledError.
"""

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar, Union, TYPE_CHECKING

import httpx

from shared.deadline import Deadline, run_bounded
from shared.errors import (
    ErrorClassification,
    OperationCancelledError,
    PermanentError,
    RetryError,
    TransientError,
)
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

T = TypeVar("T")

Classifier = Callable[[Exception], ErrorClassification]


class RetryPolicy:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 backoff_multiplier: float = 1.0,
                 backoff_strategy: str = "linear",
                 max_delay: float = 30.0,
                 jitter: bool = False):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if backoff_strategy not in ("linear", "exponential", "fixed"):
            raise ValueError(f"Unknown backoff strategy: {backoff_strategy}")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.backoff_multiplier = backoff_multiplier
        self.backoff_strategy = backoff_strategy
        self.max_delay = max_delay
        self.jitter = jitter


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Transient:
    error: Exception


@dataclass(frozen=True)
class Permanent:
    error: Exception


AttemptOutcome = Union[Success, Transient, Permanent]


def classify_exception(exc: Exception) -> ErrorClassification:
    """Default mapping from data source errors to retry classification."""
    if isinstance(exc, TransientError):
        return ErrorClassification.TRANSIENT
    if isinstance(exc, PermanentError):
        return ErrorClassification.PERMANENT
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (408, 429) or status >= 500:
            return ErrorClassification.TRANSIENT
        return ErrorClassification.PERMANENT
    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return ErrorClassification.TRANSIENT
    return ErrorClassification.PERMANENT


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """Calculate delay after the given (1-based) failed attempt."""
    if policy.backoff_strategy == "exponential":
        delay = policy.base_delay * (policy.backoff_multiplier ** (attempt - 1))
    elif policy.backoff_strategy == "linear":
        delay = policy.base_delay * policy.backoff_multiplier * attempt
    else:
        delay = policy.base_delay

    # Apply max delay cap
    delay = min(delay, policy.max_delay)

    if policy.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)


@dataclass
class RetryStats:
    """Counters for one retrying client."""
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0
    cancellations: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "attempts": self.attempts,
            "successes": self.successes,
            "failures": self.failures,
            "retries": self.retries,
            "cancellations": self.cancellations,
            "success_rate": self.successes / max(1, self.successes + self.failures),
        }


class RetryingClient:
    """Runs data source operations with bounded retries and backoff."""

    def __init__(self,
                 policy: Optional[RetryPolicy] = None,
                 classifier: Classifier = classify_exception,
                 *,
                 name: str = "data_source",
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic,
                 metrics: Optional["MetricsCollector"] = None):
        self.policy = policy or RetryPolicy()
        self.classifier = classifier
        self.name = name
        self.metrics = metrics
        self.stats = RetryStats()
        self.logger = get_logger(f"catalog.retry.{name}")
        self._sleep = sleep
        self._clock = clock

    async def execute(self,
                      operation: Callable[[], Awaitable[T]],
                      policy: Optional[RetryPolicy] = None,
                      deadline: Optional[Deadline] = None) -> T:
        """Run ``operation`` until it succeeds, fails permanently or runs out of attempts."""
        policy = policy or self.policy
        started = self._clock()
        attempt = 0

        while True:
            attempt += 1
            self.stats.attempts += 1
            self.logger.debug("Retry attempt", attempt=attempt, max_attempts=policy.max_attempts, client=self.name)

            try:
                outcome = await self._attempt(operation, deadline)
            except OperationCancelledError as exc:
                raise self._cancelled(exc, attempt, started, phase="call") from exc

            if isinstance(outcome, Success):
                self.stats.successes += 1
                self._record("success")
                if attempt > 1:
                    self.logger.info(
                        "Retry succeeded",
                        attempt=attempt,
                        elapsed_seconds=round(self._clock() - started, 3),
                        client=self.name
                    )
                return outcome.value

            if isinstance(outcome, Permanent):
                self.stats.failures += 1
                self._record("permanent")
                elapsed = self._clock() - started
                self.logger.warning(
                    "Permanent failure, not retrying",
                    attempt=attempt,
                    client=self.name,
                    error=str(outcome.error)
                )
                raise RetryError(
                    f"{self.name} failed permanently on attempt {attempt}",
                    last_exception=outcome.error,
                    attempts=attempt,
                    elapsed=elapsed,
                    classification=ErrorClassification.PERMANENT
                ) from outcome.error

            if not isinstance(outcome, Transient):
                raise TypeError(f"Unknown attempt outcome: {outcome!r}")

            self._record("transient")
            if attempt >= policy.max_attempts:
                self.stats.failures += 1
                elapsed = self._clock() - started
                self.logger.error(
                    "All retry attempts exhausted",
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    elapsed_seconds=round(elapsed, 3),
                    client=self.name,
                    error=str(outcome.error)
                )
                raise RetryError(
                    f"{self.name} failed after {attempt} attempts",
                    last_exception=outcome.error,
                    attempts=attempt,
                    elapsed=elapsed,
                    classification=ErrorClassification.TRANSIENT
                ) from outcome.error

            delay = calculate_delay(attempt, policy)
            self.stats.retries += 1
            self.logger.warning(
                "Retry attempt failed, waiting before next attempt",
                attempt=attempt,
                delay=delay,
                client=self.name,
                error=str(outcome.error)
            )

            try:
                await run_bounded(self._sleep(delay), deadline)
            except OperationCancelledError as exc:
                raise self._cancelled(exc, attempt, started, phase="backoff") from exc

    async def _attempt(self, operation: Callable[[], Awaitable[T]], deadline: Optional[Deadline]) -> AttemptOutcome:
        """Run one attempt and turn its result into an outcome."""
        try:
            value = await run_bounded(operation(), deadline)
        except OperationCancelledError:
            raise
        except Exception as exc:
            if self.classifier(exc) is ErrorClassification.TRANSIENT:
                return Transient(exc)
            return Permanent(exc)
        return Success(value)

    def _cancelled(self, exc: OperationCancelledError, attempt: int, started: float, phase: str) -> OperationCancelledError:
        self.stats.cancellations += 1
        self._record("cancelled")
        elapsed = self._clock() - started
        self.logger.warning(
            "Retried call cancelled",
            attempt=attempt,
            phase=phase,
            elapsed_seconds=round(elapsed, 3),
            client=self.name,
            reason=exc.message
        )
        return OperationCancelledError(
            f"{self.name} call cancelled during {phase}: {exc.message}",
            attempts=attempt,
            elapsed=elapsed,
            details={"phase": phase}
        )

    def _record(self, outcome: str):
        if self.metrics is not None:
            self.metrics.increment_counter("retry_attempts_total", client=self.name, outcome=outcome)
