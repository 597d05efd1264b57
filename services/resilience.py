"""Circuit breaking, failure classification and job polling for providers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, TypeVar

import requests
from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_none,
    wait_random,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Only transport-level errors are retried, and only when a policy allows
# more than one attempt.
_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


class UpstreamFailure(RuntimeError):
    """A provider call failed, returned a bad shape, or errored."""


class UpstreamTimeout(UpstreamFailure):
    """A provider call or job poll exceeded its time budget."""


class CircuitBreakerOpenError(UpstreamFailure):
    """The provider's breaker is open and the call was not attempted."""


class CircuitBreakerState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Opens after ``failure_threshold`` consecutive failures.

    While open every call is refused until ``recovery_timeout_seconds`` have
    passed; the next call is then let through as a probe (half-open), and its
    outcome closes or re-opens the breaker.
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout_seconds: float = 60.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._state = CircuitBreakerState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = 0.0

    def before_call(self) -> None:
        with self._lock:
            if self._state != CircuitBreakerState.OPEN:
                return
            if self.clock() - self._opened_at < self.recovery_timeout_seconds:
                raise CircuitBreakerOpenError(f"{self.name} circuit is open")
            self._state = CircuitBreakerState.HALF_OPEN

    def record_success(self) -> None:
        with self._lock:
            if self._state != CircuitBreakerState.CLOSED:
                logger.info("%s circuit closed", self.name)
            self._state = CircuitBreakerState.CLOSED
            self._consecutive_failures = 0

    def record_failure(self) -> None:
        with self._lock:
            self._consecutive_failures += 1
            should_open = (
                self._state == CircuitBreakerState.HALF_OPEN
                or self._consecutive_failures >= self.failure_threshold
            )
            if should_open and self._state != CircuitBreakerState.OPEN:
                logger.warning(
                    "%s circuit opened after %d consecutive failures",
                    self.name,
                    self._consecutive_failures,
                )
                self._state = CircuitBreakerState.OPEN
                self._opened_at = self.clock()

    @property
    def state(self) -> CircuitBreakerState:
        with self._lock:
            return self._state


class ResiliencePolicy:
    """Run one provider call behind a breaker and normalize its failure.

    Stage adapters use ``max_attempts=1``: a provider failure goes straight to
    the stage fallback and only the breaker state carries over between
    requests.
    """

    def __init__(
        self,
        *,
        name: str,
        max_attempts: int = 1,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self.name = name
        self.max_attempts = max_attempts
        self.breaker = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            recovery_timeout_seconds=recovery_timeout_seconds,
            clock=clock,
        )

    def execute(self, operation: Callable[[], T]) -> T:
        self.breaker.before_call()

        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.25, max=8.0) + wait_random(0, 0.25),
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )
        try:
            result = retryer(operation)
        except Exception as exc:
            self.breaker.record_failure()
            raise self._classify(exc) from exc

        self.breaker.record_success()
        return result

    def _classify(self, exc: Exception) -> UpstreamFailure:
        if isinstance(exc, UpstreamFailure):
            return exc
        if isinstance(exc, requests.Timeout | TimeoutError):
            return UpstreamTimeout(f"{self.name} timed out: {exc}")
        return UpstreamFailure(f"{self.name} failed: {exc}")


def poll_until(
    fetch: Callable[[], T],
    *,
    is_done: Callable[[T], bool],
    name: str,
    attempts: int,
    delay_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Poll an asynchronous job until ``is_done`` accepts its status.

    The delay runs before every attempt, so the worst case is
    ``attempts * delay_seconds`` plus request time.  A status request that
    errors consumes one attempt; running out of attempts raises
    ``UpstreamTimeout``.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    def _attempt() -> T | None:
        try:
            return fetch()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("%s poll attempt failed: %s", name, exc)
            return None

    def _pending(result: Any) -> bool:
        return result is None or not is_done(result)

    def _wait(_: RetryCallState) -> None:
        sleep(delay_seconds)

    retryer = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_none(),
        retry=retry_if_result(_pending),
        before=_wait,
    )

    try:
        result = retryer(_attempt)
    except RetryError as exc:
        raise UpstreamTimeout(f"{name} not finished after {attempts} polls") from exc

    if result is None:
        raise UpstreamTimeout(f"{name} returned no status")
    return result
