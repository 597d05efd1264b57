"""Resend delivery of post-ready notification emails."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any

from config import AppConfig


@dataclass(frozen=True)
class DeliveryResult:
    """Email send response."""

    message_id: str
    dry_run: bool
    raw_response: dict[str, Any]


class ResendNotifier:
    """Send single transactional emails through Resend with dry-run support."""

    def __init__(
        self,
        config: AppConfig,
        *,
        client: Any | None = None,
    ) -> None:
        self._from_email = config.notify_from_email
        self._dry_run = config.enable_dry_run
        self._client = client or self._build_default_client(config)

    @staticmethod
    def _build_default_client(config: AppConfig) -> Any:
        resend_module = importlib.import_module("resend")
        # Resend SDK v2.x uses module-level api_key + module-level resources
        resend_module.api_key = config.resend_api_key
        return resend_module

    def deliver(self, *, to: str, subject: str, html: str) -> DeliveryResult:
        """Send one email, or return a simulated payload in dry-run mode."""
        if self._dry_run:
            return DeliveryResult(
                message_id="dry-run-email",
                dry_run=True,
                raw_response={"id": "dry-run-email", "to": to, "dry_run": True},
            )

        payload = {
            "from": self._from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        response = self._client.Emails.send(payload)
        return DeliveryResult(
            message_id=_extract_id(response),
            dry_run=False,
            raw_response=_to_dict(response),
        )

    def send(self, *, to: str, subject: str, html: str) -> str:
        return self.deliver(to=to, subject=subject, html=html).message_id


def _extract_id(response: Any) -> str:
    as_dict = _to_dict(response)
    if not as_dict.get("id"):
        raise ValueError("Resend response missing id")
    return str(as_dict["id"])


def _to_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "__dict__"):
        return {k: v for k, v in vars(response).items() if not k.startswith("_")}
    return {"raw": str(response)}
