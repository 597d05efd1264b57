"""Apify-backed LinkedIn profile scraper used for prompt enrichment."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import requests

from config import AppConfig
from models import ProfileSnapshot
from services.resilience import UpstreamFailure, poll_until

APIFY_BASE_URL = "https://api.apify.com/v2"
APIFY_ACTOR_ID = "drobnikj~linkedin-profile-scraper"

RUN_SUCCEEDED = "SUCCEEDED"
RUN_TERMINAL_FAILURES = frozenset({"FAILED", "ABORTED", "TIMED-OUT"})


class ApifyProfileScraper:
    """Start an actor run, poll it, and read the first dataset item."""

    def __init__(
        self,
        config: AppConfig,
        *,
        http: Any = requests,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not config.apify_api_key:
            raise ValueError("APIFY_API_KEY is required for live enrichment")
        self._api_key = config.apify_api_key
        self._http = http
        self._sleep = sleep
        self._timeout_seconds = config.default_stage_timeout_seconds
        self._poll_attempts = config.enrichment_poll_attempts
        self._poll_delay_seconds = config.enrichment_poll_delay_seconds

    def fetch_profile(self, profile_url: str) -> ProfileSnapshot:
        run_id = self._start_run(profile_url)
        status = poll_until(
            lambda: self._fetch_status(run_id),
            is_done=lambda value: value == RUN_SUCCEEDED or value in RUN_TERMINAL_FAILURES,
            name="apify_run",
            attempts=self._poll_attempts,
            delay_seconds=self._poll_delay_seconds,
            sleep=self._sleep,
        )
        if status != RUN_SUCCEEDED:
            raise UpstreamFailure(f"Apify run {run_id} ended with status {status}")

        items = self._fetch_items(run_id)
        if not items or not isinstance(items[0], dict):
            raise ValueError("Apify dataset returned no profile")
        return _to_snapshot(items[0])

    def _start_run(self, profile_url: str) -> str:
        response = self._http.post(
            f"{APIFY_BASE_URL}/acts/{APIFY_ACTOR_ID}/runs",
            params={"token": self._api_key},
            json={
                "startUrls": [{"url": profile_url}],
                "proxyConfiguration": {"useApifyProxy": True},
            },
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        run_id = _data_field(response.json(), "id")
        if not run_id:
            raise ValueError("Failed to start scraping task")
        return run_id

    def _fetch_status(self, run_id: str) -> str:
        response = self._http.get(
            f"{APIFY_BASE_URL}/actor-runs/{run_id}",
            params={"token": self._api_key},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        return _data_field(response.json(), "status")

    def _fetch_items(self, run_id: str) -> list[Any]:
        response = self._http.get(
            f"{APIFY_BASE_URL}/actor-runs/{run_id}/dataset/items",
            params={"token": self._api_key},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, list) else []


def _data_field(payload: Any, key: str) -> str:
    if not isinstance(payload, dict):
        return ""
    data = payload.get("data")
    if not isinstance(data, dict):
        return ""
    return str(data.get(key) or "")


def _to_snapshot(item: dict[str, Any]) -> ProfileSnapshot:
    return ProfileSnapshot(
        full_name=str(item.get("fullName") or "Unknown"),
        headline=str(item.get("headline") or ""),
        about=str(item.get("about") or ""),
        location=str(item.get("location") or ""),
        industry=str(item.get("industry") or ""),
    )
