"""GET /status: report provider mode and which providers are configured."""

from __future__ import annotations

from datetime import UTC, datetime
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
from config import AppConfig
from runtime import ServiceRuntime, get_runtime
from services.observability import get_logger


def provider_status(config: AppConfig) -> dict[str, bool]:
    fixture = config.is_fixture_mode
    return {
        "gemini": fixture or bool(config.gemini_api_key),
        "undetectable": fixture or bool(config.undetectable_api_key),
        "sapling": fixture or bool(config.sapling_api_key),
        "languagetool": fixture or bool(config.languagetool_api_key),
        "resend": fixture or bool(config.resend_api_key),
        "apify": config.enrichment_configured,
        "phantombuster": config.automation_configured,
    }


def process_request(
    *,
    method: str,
    headers: dict[str, str] | None,
    runtime: ServiceRuntime | None = None,
    now: datetime | None = None,
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

    timestamp = (now or datetime.now(UTC)).isoformat()
    return json_response(
        200,
        {
            "status": "success",
            "data": {
                "backend": "operational",
                "providerMode": active.config.provider_mode,
                "dryRun": active.config.enable_dry_run,
                "apis": provider_status(active.config),
                "timestamp": timestamp,
            },
        },
        cors,
    )


def handler(request: Any) -> Any:
    """Vercel-style handler adapter."""
    try:
        inbound = read_request(request)
        response = process_request(method=inbound.method, headers=inbound.headers)
    except Exception as exc:  # noqa: BLE001
        get_logger().error("endpoint_failed", endpoint="status", error=str(exc))
        response = EndpointResponse(
            status_code=500,
            headers={"Content-Type": "application/json"},
            body=error_body("Health check failed", str(exc)),
        )
    return to_vercel(response)
