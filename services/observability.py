"""JSON event logging for pipeline runs and HTTP handlers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any

from models import StageName

_LOGGER_NAME = "post_pipeline"


@dataclass(frozen=True)
class LogContext:
    """Identifiers attached to every event of one run."""

    run_id: str | None = None
    requester_id: str | None = None
    stage: StageName | None = None

    def for_stage(self, stage: StageName) -> LogContext:
        return replace(self, stage=stage)

    def as_fields(self) -> dict[str, str]:
        fields: dict[str, str] = {}
        if self.run_id:
            fields["run_id"] = self.run_id
        if self.requester_id:
            fields["requester_id"] = self.requester_id
        if self.stage is not None:
            fields["stage"] = self.stage.value
        return fields


class StructuredLogger:
    """One JSON object per line, so a run can be rebuilt from its ``run_id``."""

    def __init__(self, name: str = _LOGGER_NAME) -> None:
        self._logger = logging.getLogger(name)
        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)
        self._logger.setLevel(logging.INFO)

    def info(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit(logging.INFO, event, context, fields)

    def warning(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit(logging.WARNING, event, context, fields)

    def error(self, event: str, *, context: LogContext | None = None, **fields: Any) -> None:
        self._emit(logging.ERROR, event, context, fields)

    def _emit(
        self,
        level: int,
        event: str,
        context: LogContext | None,
        fields: dict[str, Any],
    ) -> None:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": logging.getLevelName(level).lower(),
            "event": event,
        }
        if context is not None:
            payload.update(context.as_fields())
        # Explicit fields win over context values.
        payload.update(fields)
        self._logger.log(level, json.dumps(payload, sort_keys=True, default=str))


_default_logger: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _default_logger
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger
