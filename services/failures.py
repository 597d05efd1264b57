"""Dead letters for runs aborted by a fatal stage failure."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from models import PipelineRun, StageName


def save_dead_letter(
    *,
    failure_dir: Path,
    run: PipelineRun,
    stage: StageName,
    error: str,
) -> Path:
    """Write the failed request and its partial progress for manual replay.

    The file carries everything needed to resubmit the request: the original
    fields under ``payload`` plus the prompt actually sent to generation.
    """
    failure_dir.mkdir(parents=True, exist_ok=True)
    failed_at = datetime.now(UTC)
    out_path = (
        failure_dir / f"failure_{stage.value}_{run.run_id}_{failed_at:%Y%m%dT%H%M%SZ}.json"
    )
    out_path.write_text(
        json.dumps(_dead_letter_body(run, stage, error, failed_at), indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return out_path


def _dead_letter_body(
    run: PipelineRun,
    stage: StageName,
    error: str,
    failed_at: datetime,
) -> dict[str, Any]:
    request = run.request
    return {
        "run_id": run.run_id,
        "requester_id": request.requester_id,
        "stage": stage.value,
        "error": error,
        "payload": {
            "prompt": request.prompt,
            "notifyAddress": request.notify_address,
            "enrichmentSource": request.enrichment_source,
            "triggerAutomation": request.trigger_automation,
        },
        "enriched_prompt": run.enriched_prompt,
        "step_flags": {name.value: done for name, done in run.step_flags.items()},
        "started_at": run.started_at.isoformat(),
        "failed_at": failed_at.isoformat(),
    }
