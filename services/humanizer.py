"""Undetectable.ai humanization client."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import requests

from config import AppConfig
from services.resilience import poll_until

UNDETECTABLE_BASE_URL = "https://api.undetectable.ai"
DOCUMENT_DONE = "done"


class UndetectableHumanizer:
    """Submit a document for rewriting and poll until the output is ready."""

    def __init__(
        self,
        config: AppConfig,
        *,
        http: Any = requests,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not config.undetectable_api_key:
            raise ValueError("UNDETECTABLE_API_KEY is required for live humanization")
        self._headers = {
            "Authorization": f"Bearer {config.undetectable_api_key}",
            "Content-Type": "application/json",
        }
        self._http = http
        self._sleep = sleep
        self._submit_timeout_seconds = config.humanizer_submit_timeout_seconds
        self._poll_timeout_seconds = config.default_stage_timeout_seconds
        self._poll_attempts = config.humanizer_poll_attempts
        self._poll_delay_seconds = config.humanizer_poll_delay_seconds

    def humanize(self, content: str) -> str:
        document_id = self._submit(content)
        document = poll_until(
            lambda: self._fetch_document(document_id),
            is_done=lambda doc: doc.get("status") == DOCUMENT_DONE,
            name="undetectable_document",
            attempts=self._poll_attempts,
            delay_seconds=self._poll_delay_seconds,
            sleep=self._sleep,
        )
        output = document.get("output")
        if not isinstance(output, str) or not output.strip():
            raise ValueError("Humanizer returned no output")
        return output

    def _submit(self, content: str) -> str:
        response = self._http.post(
            f"{UNDETECTABLE_BASE_URL}/submit",
            headers=self._headers,
            json={
                "content": content,
                "readability": "High School",
                "purpose": "General Writing",
                "strength": "More Human",
            },
            timeout=self._submit_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        document_id = payload.get("id") if isinstance(payload, dict) else None
        if not document_id:
            raise ValueError("Humanizer submit response missing id")
        return str(document_id)

    def _fetch_document(self, document_id: str) -> dict[str, Any]:
        response = self._http.get(
            f"{UNDETECTABLE_BASE_URL}/document/{document_id}",
            headers=self._headers,
            timeout=self._poll_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Humanizer document response is not an object")
        return payload
