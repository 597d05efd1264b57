"""Uniform stage adapter: provider call, fallback, and timing."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Generic, TypeVar

from models import StageName, StageResult
from services.observability import LogContext, StructuredLogger, get_logger
from services.resilience import ResiliencePolicy, UpstreamFailure

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class StageAdapter(Generic[InputT, OutputT]):
    """Run one stage's provider operation and normalize the outcome.

    Every provider failure (transport error, timeout, malformed response,
    open breaker) becomes a ``StageResult`` with ``succeeded=False``.  When a
    fallback is configured its same-shape value is returned and
    ``source_fallback`` is set; without one the value is ``None`` and the
    caller decides whether the stage is fatal.
    """

    def __init__(
        self,
        stage: StageName,
        operation: Callable[[InputT], OutputT],
        *,
        fallback: Callable[[InputT], OutputT] | None = None,
        policy: ResiliencePolicy | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stage = stage
        self._operation = operation
        self._fallback = fallback
        self._policy = policy or ResiliencePolicy(name=f"{stage.value}_provider")
        self._logger = logger or get_logger()
        self._clock = clock

    def invoke(
        self,
        value: InputT,
        *,
        context: LogContext | None = None,
    ) -> StageResult[OutputT | None]:
        started = self._clock()
        context = (context or LogContext()).for_stage(self.stage)
        try:
            output = self._policy.execute(lambda: self._operation(value))
        except UpstreamFailure as exc:
            duration_ms = self._elapsed_ms(started)
            if self._fallback is None:
                return StageResult(
                    succeeded=False,
                    value=None,
                    duration_ms=duration_ms,
                    source_fallback=False,
                    error=str(exc),
                )
            self._logger.warning(
                "stage_fallback",
                context=context,
                duration_ms=duration_ms,
                error=str(exc),
            )
            return StageResult(
                succeeded=False,
                value=self._fallback(value),
                duration_ms=duration_ms,
                source_fallback=True,
                error=str(exc),
            )

        duration_ms = self._elapsed_ms(started)
        self._logger.info(
            "stage_completed",
            context=context,
            duration_ms=duration_ms,
        )
        return StageResult(
            succeeded=True,
            value=output,
            duration_ms=duration_ms,
            source_fallback=False,
        )

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock() - started) * 1000))
