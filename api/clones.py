"""GET /clones lists a requester's clones; POST /clones saves a new one."""

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
from runtime import ServiceRuntime, get_runtime
from services.observability import get_logger
from services.schemas import CLONE_REQUEST_SCHEMA
from services.validator import ContentValidationError, validate_json_payload

ALLOWED_METHODS = ("GET", "POST")


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    raw_body: str = "",
    query: dict[str, str] | None = None,
    runtime: ServiceRuntime | None = None,
) -> EndpointResponse:
    active = runtime or get_runtime()
    origin = normalize_headers(headers).get("origin", "")
    allowed_origins = active.config.allowed_origins
    cors = cors_headers(
        origin=origin,
        allowed_origins=allowed_origins,
        methods="GET, POST, OPTIONS",
    )

    normalized_method = method.upper()
    rejected = preflight_or_reject(
        method=normalized_method,
        origin=origin,
        allowed_origins=allowed_origins,
        allowed_methods=ALLOWED_METHODS,
        cors=cors,
    )
    if rejected is not None:
        return rejected

    if normalized_method == "GET":
        return _list_clones(active, query or {}, cors)
    return _save_clone(active, raw_body, cors)


def _list_clones(
    runtime: ServiceRuntime,
    query: dict[str, str],
    cors: dict[str, str],
) -> EndpointResponse:
    requester_id = query.get("requesterId", "").strip()
    if not requester_id:
        return json_response(400, error_body("Missing required fields", "requesterId"), cors)

    clones = runtime.clone_builder.list_clones(requester_id)
    return json_response(
        200,
        {
            "status": "success",
            "data": {
                "clones": [clone.to_payload() for clone in clones],
                "total": len(clones),
            },
        },
        cors,
    )


def _save_clone(runtime: ServiceRuntime, raw_body: str, cors: dict[str, str]) -> EndpointResponse:
    payload = parse_payload(raw_body)
    if payload is None:
        return json_response(400, error_body("Invalid JSON body", "invalid_json"), cors)
    try:
        validate_json_payload(payload, CLONE_REQUEST_SCHEMA)
    except ContentValidationError as exc:
        return json_response(
            400,
            error_body("Missing required fields: samplePost, cloneName, requesterId", str(exc)),
            cors,
        )

    clone = runtime.clone_builder.save_clone(
        requester_id=payload["requesterId"].strip(),
        clone_name=payload["cloneName"].strip(),
        sample_post=payload["samplePost"],
    )
    return json_response(
        200,
        {
            "status": "success",
            "message": "Clone saved successfully",
            "data": {"clone": clone.to_payload()},
        },
        cors,
    )


def handler(request: Any) -> Any:
    """Vercel-style handler adapter."""
    try:
        inbound = read_request(request)
        response = process_request(
            method=inbound.method,
            headers=inbound.headers,
            raw_body=inbound.raw_body,
            query=inbound.query,
        )
    except Exception as exc:  # noqa: BLE001
        get_logger().error("endpoint_failed", endpoint="clones", error=str(exc))
        response = EndpointResponse(
            status_code=500,
            headers={"Content-Type": "application/json"},
            body=error_body("Failed to process clone request", str(exc)),
        )
    return to_vercel(response)
