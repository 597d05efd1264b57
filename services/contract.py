"""Request parsing, rejection errors, and response bodies for post processing."""

from __future__ import annotations

from typing import Any

from models import (
    ContentRequest,
    PipelineRunResult,
    Rejection,
    RejectionCode,
    StageName,
)
from services.schemas import CONTENT_REQUEST_SCHEMA
from services.validator import (
    ContentValidationError,
    is_valid_email,
    is_web_url,
    validate_json_payload,
)

SUCCESS_MESSAGE = "LinkedIn post processed successfully"

HTTP_STATUS_BY_CODE: dict[RejectionCode, int] = {
    RejectionCode.VALIDATION: 400,
    RejectionCode.NOT_FOUND: 404,
    RejectionCode.QUOTA_EXCEEDED: 403,
    RejectionCode.UPSTREAM_FAILURE: 500,
}


class PipelineRejection(Exception):
    """Base for refusals raised before any stage runs."""

    code: RejectionCode = RejectionCode.VALIDATION

    def __init__(self, message: str, *, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error or message

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]

    def to_rejection(self) -> Rejection:
        return Rejection(code=self.code, message=self.message, error=self.error)


class ValidationError(PipelineRejection):
    code = RejectionCode.VALIDATION


class NotFoundError(PipelineRejection):
    code = RejectionCode.NOT_FOUND


class QuotaExceededError(PipelineRejection):
    code = RejectionCode.QUOTA_EXCEEDED


def parse_content_request(payload: Any) -> ContentRequest:
    """Build a ``ContentRequest`` from a decoded JSON body."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        validate_json_payload(payload, CONTENT_REQUEST_SCHEMA)
    except ContentValidationError as exc:
        raise ValidationError("Missing required fields", error=str(exc)) from exc

    source = (payload.get("enrichmentSource") or "").strip()
    request = ContentRequest(
        prompt=payload["prompt"].strip(),
        notify_address=payload["notifyAddress"].strip(),
        requester_id=payload["requesterId"].strip(),
        enrichment_source=source or None,
        trigger_automation=bool(payload.get("triggerAutomation") or False),
    )
    validate_content_request(request)
    return request


def validate_content_request(request: ContentRequest) -> None:
    """Raise ``ValidationError`` when a request cannot start a run."""
    missing = [
        name
        for name, value in (
            ("prompt", request.prompt),
            ("notifyAddress", request.notify_address),
            ("requesterId", request.requester_id),
        )
        if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(
            "Missing required fields",
            error=f"Blank or missing: {', '.join(missing)}",
        )
    if not is_valid_email(request.notify_address.strip()):
        raise ValidationError("Invalid notification address", error=request.notify_address)
    if request.enrichment_source is not None and not is_web_url(request.enrichment_source):
        raise ValidationError(
            "Invalid enrichment source",
            error="enrichmentSource must be an http(s) URL",
        )


def _flags_payload(flags: dict[StageName, bool]) -> dict[str, bool]:
    return {stage.value: bool(flag) for stage, flag in flags.items()}


def build_success_body(result: PipelineRunResult) -> dict[str, Any]:
    run = result.run
    data: dict[str, Any] = {
        "finalContent": run.corrected_content,
        "aiScore": run.ai_score,
        "humanScore": run.human_score,
        "notificationSent": run.notification_sent,
        "automationTriggered": run.automation_triggered,
        "stepFlags": _flags_payload(run.step_flags),
        "providerFlags": _flags_payload(run.provider_flags),
        "metadata": {
            "originalPrompt": run.request.prompt,
            "wasEnriched": run.was_enriched,
            "correctionCount": run.grammar_correction_count,
            "processingTimeMs": result.processing_time_ms,
        },
    }
    if run.profile_snapshot is not None:
        data["profileSnapshot"] = run.profile_snapshot.to_payload()
    if result.post_id is not None:
        data["postId"] = result.post_id
    return {"status": "success", "message": SUCCESS_MESSAGE, "data": data}


def build_error_body(rejection: Rejection) -> dict[str, Any]:
    body: dict[str, Any] = {
        "status": "error",
        "message": rejection.message,
        "error": rejection.error,
    }
    if rejection.code == RejectionCode.UPSTREAM_FAILURE:
        body["stepFlags"] = _flags_payload(rejection.step_flags)
    return body
