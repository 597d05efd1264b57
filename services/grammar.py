"""LanguageTool grammar checking and correction application."""

from __future__ import annotations

from typing import Any

import requests

from config import AppConfig
from models import GrammarCorrection

LANGUAGETOOL_CHECK_URL = "https://api.languagetoolplus.com/v2/check"
DEFAULT_LANGUAGE = "en-US"


class LanguageToolChecker:
    """Return raw LanguageTool matches for a text."""

    def __init__(self, config: AppConfig, *, http: Any = requests) -> None:
        self._api_key = config.languagetool_api_key
        self._http = http
        self._timeout_seconds = config.default_stage_timeout_seconds

    def check(self, text: str) -> list[dict[str, Any]]:
        headers = {"Content-Type": "application/x-www-form-urlencoded"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        response = self._http.post(
            LANGUAGETOOL_CHECK_URL,
            headers=headers,
            data={"text": text, "language": DEFAULT_LANGUAGE},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        matches = payload.get("matches") if isinstance(payload, dict) else None
        if not isinstance(matches, list):
            raise ValueError("LanguageTool response missing matches")
        return matches


def apply_corrections(text: str, matches: list[dict[str, Any]]) -> GrammarCorrection:
    """Apply the first suggested replacement of each match.

    Matches are applied from the end of the text backwards so earlier offsets
    stay valid.  Spans that fall outside the text, carry no replacement, or
    overlap a span already applied are skipped.
    """
    spans: list[tuple[int, int, str]] = []
    for match in matches:
        span = _replacement_span(match)
        if span is not None:
            spans.append(span)

    corrected = text
    applied = 0
    lowest_applied_offset = len(text) + 1
    for offset, length, replacement in sorted(spans, key=lambda item: item[0], reverse=True):
        end = offset + length
        if end > len(text) or end > lowest_applied_offset:
            continue
        corrected = corrected[:offset] + replacement + corrected[end:]
        lowest_applied_offset = offset
        applied += 1

    return GrammarCorrection(text=corrected, correction_count=applied)


def _replacement_span(match: dict[str, Any]) -> tuple[int, int, str] | None:
    offset = match.get("offset")
    length = match.get("length")
    if not isinstance(offset, int) or not isinstance(length, int):
        return None
    if isinstance(offset, bool) or isinstance(length, bool) or offset < 0 or length < 0:
        return None

    replacements = match.get("replacements") or []
    if not replacements or not isinstance(replacements[0], dict):
        return None
    value = replacements[0].get("value")
    if not isinstance(value, str):
        return None
    return offset, length, value
