"""GET /credits?requesterId=...: current credit balance and plan."""

from __future__ import annotations

from typing import Any

from api._shared import (
    EndpointResponse,
    cors_headers,
    error_body,
    json_response,
    normalize_headers,
    preflight_or_reject,
    read_request,
    to_vercel,
)
from runtime import ServiceRuntime, get_runtime
from services.observability import get_logger


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    query: dict[str, str] | None = None,
    runtime: ServiceRuntime | None = None,
) -> EndpointResponse:
    active = runtime or get_runtime()
    origin = normalize_headers(headers).get("origin", "")
    allowed_origins = active.config.allowed_origins
    cors = cors_headers(origin=origin, allowed_origins=allowed_origins, methods="GET, OPTIONS")

    rejected = preflight_or_reject(
        method=method.upper(),
        origin=origin,
        allowed_origins=allowed_origins,
        allowed_methods=("GET",),
        cors=cors,
    )
    if rejected is not None:
        return rejected

    requester_id = (query or {}).get("requesterId", "").strip()
    if not requester_id:
        return json_response(400, error_body("Missing required fields", "requesterId"), cors)

    account = active.store.get_account(requester_id)
    if account is None:
        return json_response(404, error_body("User profile not found", requester_id), cors)

    return json_response(
        200,
        {
            "status": "success",
            "data": {
                "credits": account.remaining,
                "plan": account.plan.value,
                "unlimited": not account.is_metered,
            },
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
            query=inbound.query,
        )
    except Exception as exc:  # noqa: BLE001
        get_logger().error("endpoint_failed", endpoint="credits", error=str(exc))
        response = EndpointResponse(
            status_code=500,
            headers={"Content-Type": "application/json"},
            body=error_body("Internal server error", str(exc)),
        )
    return to_vercel(response)
