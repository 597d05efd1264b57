"""Sapling AI-content detection client."""

from __future__ import annotations

from typing import Any

import requests

from config import AppConfig

SAPLING_DETECT_URL = "https://api.sapling.ai/api/v1/aidetect"


class SaplingDetector:
    """Score how likely a text is machine written, in ``[0, 1]``."""

    def __init__(self, config: AppConfig, *, http: Any = requests) -> None:
        if not config.sapling_api_key:
            raise ValueError("SAPLING_API_KEY is required for live detection")
        self._api_key = config.sapling_api_key
        self._http = http
        self._timeout_seconds = config.default_stage_timeout_seconds

    def score(self, text: str) -> float:
        response = self._http.post(
            SAPLING_DETECT_URL,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            json={"text": text},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        value = payload.get("score") if isinstance(payload, dict) else None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Sapling score is not numeric: {value!r}")
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Sapling score out of range: {value!r}")
        return float(value)
