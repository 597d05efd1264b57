"""POST /process-content: run the post pipeline for one request."""

from __future__ import annotations

from typing import Any

from api._shared import (
    EndpointResponse,
    cors_headers,
    error_body,
    json_response,
    normalize_headers,
    parse_payload,
    preflight_or_reject,
    read_request,
    to_vercel,
)
from models import PipelineRunResult
from runtime import ServiceRuntime, get_runtime
from services.contract import (
    HTTP_STATUS_BY_CODE,
    PipelineRejection,
    build_error_body,
    build_success_body,
    parse_content_request,
)
from services.observability import get_logger

ALLOWED_METHODS = ("POST",)


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    raw_body: str,
    runtime: ServiceRuntime | None = None,
) -> EndpointResponse:
    """Process a content request for serverless and unit test use."""
    active = runtime or get_runtime()
    request_headers = normalize_headers(headers)
    origin = request_headers.get("origin", "")
    allowed_origins = active.config.allowed_origins
    cors = cors_headers(origin=origin, allowed_origins=allowed_origins, methods="POST, OPTIONS")

    rejected = preflight_or_reject(
        method=method.upper(),
        origin=origin,
        allowed_origins=allowed_origins,
        allowed_methods=ALLOWED_METHODS,
        cors=cors,
    )
    if rejected is not None:
        return rejected

    payload = parse_payload(raw_body)
    if payload is None:
        return json_response(400, error_body("Invalid JSON body", "invalid_json"), cors)

    try:
        content_request = parse_content_request(payload)
    except PipelineRejection as exc:
        return json_response(exc.http_status, build_error_body(exc.to_rejection()), cors)

    outcome = active.pipeline.run(content_request)
    if isinstance(outcome, PipelineRunResult):
        return json_response(200, build_success_body(outcome), cors)
    return json_response(HTTP_STATUS_BY_CODE[outcome.code], build_error_body(outcome), cors)


def handler(request: Any) -> Any:
    """Vercel-style handler adapter."""
    try:
        inbound = read_request(request)
        response = process_request(
            method=inbound.method,
            headers=inbound.headers,
            raw_body=inbound.raw_body,
        )
    except Exception as exc:  # noqa: BLE001
        get_logger().error("endpoint_failed", endpoint="process-content", error=str(exc))
        response = EndpointResponse(
            status_code=500,
            headers={"Content-Type": "application/json"},
            body=error_body("Internal server error", str(exc)),
        )
    return to_vercel(response)
