"""Validation helpers for request fields, model output, and rendered email."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from jsonschema import ValidationError, validate

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?\s*```")


class ContentValidationError(ValueError):
    """Raised when a payload fails schema or shape checks."""


def extract_json_payload(raw_text: str) -> dict[str, Any]:
    """Extract the first JSON object from model output text.

    Accepts a bare object, an object inside a markdown code fence, or an
    object embedded in surrounding prose.
    """
    text = raw_text.strip()
    if not text:
        raise ContentValidationError("Model returned empty response")

    candidates = [text]
    fence_match = _FENCE_PATTERN.search(text)
    if fence_match:
        candidates.append(fence_match.group(1).strip())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    # Fall back to decoding from each opening brace until one parses.
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        start = text.find("{", start + 1)

    raise ContentValidationError("No JSON object found in model output")


def validate_json_payload(payload: dict[str, Any], schema: dict[str, object]) -> None:
    """Validate payload against schema and surface clean error messages."""
    try:
        validate(instance=payload, schema=schema)
    except ValidationError as exc:
        path = ".".join(str(part) for part in exc.path)
        context = f" at {path}" if path else ""
        raise ContentValidationError(f"Schema validation failed{context}: {exc.message}") from exc


def is_valid_email(value: str) -> bool:
    return bool(value and EMAIL_PATTERN.match(value))


def is_web_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def validate_rendered_notification(html: str) -> list[str]:
    """Check that a rendered notification carries the post and both scores."""
    errors: list[str] = []
    soup = BeautifulSoup(html, "html.parser")

    container = soup.find(class_="post-container")
    if container is None:
        errors.append("Missing post container")
    elif not any(p.get_text(strip=True) for p in container.find_all("p")):
        errors.append("Post container is empty")

    if len(soup.find_all(class_="stat-value")) != 2:
        errors.append("Expected human and AI score blocks")

    if soup.find("script") is not None:
        errors.append("Rendered notification must not contain scripts")

    return errors
