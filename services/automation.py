"""PhantomBuster agent launch for post-publication automation."""

from __future__ import annotations

from typing import Any

import requests

from config import AppConfig

PHANTOMBUSTER_LAUNCH_URL = "https://api.phantombuster.com/api/v2/agents/launch"


class PhantomBusterLauncher:
    """Launch the configured agent; the launched job is never polled."""

    def __init__(self, config: AppConfig, *, http: Any = requests) -> None:
        if not config.phantombuster_api_key or not config.phantom_id:
            raise ValueError("PHANTOMBUSTER_API_KEY and PHANTOM_ID are required for automation")
        self._api_key = config.phantombuster_api_key
        self._phantom_id = config.phantom_id
        self._http = http
        self._timeout_seconds = config.default_stage_timeout_seconds

    def launch(self) -> str:
        response = self._http.post(
            PHANTOMBUSTER_LAUNCH_URL,
            headers={
                "X-Phantombuster-Key": self._api_key,
                "Content-Type": "application/json",
            },
            json={"id": self._phantom_id},
            timeout=self._timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        container_id = payload.get("containerId") if isinstance(payload, dict) else None
        if not container_id:
            raise ValueError("PhantomBuster launch response missing containerId")
        return str(container_id)
