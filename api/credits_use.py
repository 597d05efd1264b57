"""POST /credits/use: deduct credits outside a pipeline run."""

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


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    raw_body: str,
    runtime: ServiceRuntime | None = None,
) -> EndpointResponse:
    active = runtime or get_runtime()
    origin = normalize_headers(headers).get("origin", "")
    allowed_origins = active.config.allowed_origins
    cors = cors_headers(origin=origin, allowed_origins=allowed_origins, methods="POST, OPTIONS")

    rejected = preflight_or_reject(
        method=method.upper(),
        origin=origin,
        allowed_origins=allowed_origins,
        allowed_methods=("POST",),
        cors=cors,
    )
    if rejected is not None:
        return rejected

    payload = parse_payload(raw_body)
    if payload is None:
        return json_response(400, error_body("Invalid JSON body", "invalid_json"), cors)

    requester_id = payload.get("requesterId")
    if not isinstance(requester_id, str) or not requester_id.strip():
        return json_response(400, error_body("Missing required fields", "requesterId"), cors)

    amount = payload.get("amount")
    # bool is an int subclass; reject it explicitly.
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return json_response(422, error_body("Invalid amount", "amount"), cors)

    account = active.store.get_account(requester_id.strip())
    if account is None:
        return json_response(404, error_body("User profile not found", requester_id), cors)

    if not active.ledger.spend(account, amount):
        return json_response(402, error_body("Insufficient credits", "insufficient_credits"), cors)

    refreshed = active.store.get_account(account.requester_id) or account
    return json_response(
        200,
        {
            "status": "success",
            "message": "Credits deducted successfully",
            "data": {
                "credits": refreshed.remaining,
                "plan": refreshed.plan.value,
                "unlimited": not refreshed.is_metered,
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
            raw_body=inbound.raw_body,
        )
    except Exception as exc:  # noqa: BLE001
        get_logger().error("endpoint_failed", endpoint="credits-use", error=str(exc))
        response = EndpointResponse(
            status_code=500,
            headers={"Content-Type": "application/json"},
            body=error_body("Internal server error", str(exc)),
        )
    return to_vercel(response)
