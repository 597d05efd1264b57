"""Request/response plumbing shared by the serverless endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlparse


@dataclass(frozen=True)
class EndpointResponse:
    """HTTP-like response shape used by tests and serverless adapters."""

    status_code: int
    headers: dict[str, str]
    body: dict[str, Any]


@dataclass(frozen=True)
class InboundRequest:
    method: str
    headers: dict[str, str]
    raw_body: str
    query: dict[str, str]


def read_request(request: Any) -> InboundRequest:
    """Pull method, headers, body and query out of a Vercel-style request."""
    method = str(getattr(request, "method", "GET"))
    headers = dict(getattr(request, "headers", {}) or {})

    body_value = getattr(request, "body", b"")
    if isinstance(body_value, (bytes, bytearray)):
        # Undecodable bytes become U+FFFD so the JSON parse rejects the body.
        raw_body = bytes(body_value).decode("utf-8", errors="replace")
    else:
        raw_body = str(body_value or "")

    query_value = getattr(request, "query", None) or getattr(request, "args", None)
    if query_value:
        query = {str(k): str(v) for k, v in dict(query_value).items()}
    else:
        query = parse_query(str(getattr(request, "url", "") or getattr(request, "path", "")))

    return InboundRequest(method=method, headers=headers, raw_body=raw_body, query=query)


def parse_query(url: str) -> dict[str, str]:
    parsed = parse_qs(urlparse(url).query)
    return {key: values[0] for key, values in parsed.items() if values}


def to_vercel(response: EndpointResponse) -> tuple[str, int, dict[str, str]]:
    # Vercel python runtime accepts tuple (body, status, headers).
    return json.dumps(response.body), response.status_code, response.headers


def parse_payload(raw_body: str) -> dict[str, Any] | None:
    if not raw_body.strip():
        return None
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def normalize_headers(headers: dict[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


def is_origin_allowed(*, origin: str, allowed_origins: tuple[str, ...]) -> bool:
    if not allowed_origins:
        return not origin
    return bool(origin and origin in allowed_origins)


def cors_headers(
    *,
    origin: str,
    allowed_origins: tuple[str, ...],
    methods: str,
) -> dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }
    if origin and is_origin_allowed(origin=origin, allowed_origins=allowed_origins):
        headers["Access-Control-Allow-Origin"] = origin
    return headers


def json_response(
    status_code: int,
    body: dict[str, Any],
    cors: dict[str, str],
) -> EndpointResponse:
    return EndpointResponse(
        status_code=status_code,
        headers={"Content-Type": "application/json", **cors},
        body=body,
    )


def error_body(message: str, error: str | None = None) -> dict[str, Any]:
    return {"status": "error", "message": message, "error": error or message}


def preflight_or_reject(
    *,
    method: str,
    origin: str,
    allowed_origins: tuple[str, ...],
    allowed_methods: tuple[str, ...],
    cors: dict[str, str],
) -> EndpointResponse | None:
    """Answer OPTIONS, wrong methods and foreign origins; ``None`` means proceed."""
    allowed = is_origin_allowed(origin=origin, allowed_origins=allowed_origins)
    if method == "OPTIONS":
        if not allowed:
            return json_response(403, error_body("Origin not allowed", "origin_not_allowed"), cors)
        return json_response(204, {}, cors)

    if method not in allowed_methods:
        return json_response(405, error_body("Method not allowed", "method_not_allowed"), cors)

    if not allowed:
        return json_response(403, error_body("Origin not allowed", "origin_not_allowed"), cors)
    return None
