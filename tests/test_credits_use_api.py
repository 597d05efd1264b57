"""Tests for the credit spend endpoint."""

from __future__ import annotations

import json
from typing import Any

import pytest

from api import credits_use
from config import AppConfig
from runtime import ServiceRuntime, build_runtime
from services.store import ContentStore

ORIGIN = {"Origin": "https://app.example.com"}


@pytest.fixture
def runtime(app_config: AppConfig, store: ContentStore, fake_providers: Any) -> ServiceRuntime:
    del store
    return build_runtime(app_config, providers=fake_providers.as_set())


def _spend(runtime: ServiceRuntime, body: dict[str, Any]) -> Any:
    return credits_use.process_request(
        method="POST",
        headers=ORIGIN,
        raw_body=json.dumps(body),
        runtime=runtime,
    )


def test_spend_deducts_and_returns_balance(runtime: ServiceRuntime) -> None:
    response = _spend(runtime, {"requesterId": "user-metered", "amount": 2})

    assert response.status_code == 200
    assert response.body["message"] == "Credits deducted successfully"
    assert response.body["data"] == {"credits": 1, "plan": "metered", "unlimited": False}
    [event] = runtime.store.list_usage_events("user-metered")
    assert (event.service, event.credits_used) == ("credits", 2)


@pytest.mark.parametrize("amount", [0, -1, 1.5, "2", True, None])
def test_invalid_amount_is_422(runtime: ServiceRuntime, amount: Any) -> None:
    response = _spend(runtime, {"requesterId": "user-metered", "amount": amount})

    assert response.status_code == 422
    assert runtime.store.get_account("user-metered").remaining == 3


def test_insufficient_credits_is_402(runtime: ServiceRuntime) -> None:
    response = _spend(runtime, {"requesterId": "user-metered", "amount": 4})

    assert response.status_code == 402
    assert runtime.store.get_account("user-metered").remaining == 3
    assert runtime.store.list_usage_events("user-metered") == []


def test_unlimited_plan_is_never_charged(runtime: ServiceRuntime) -> None:
    response = _spend(runtime, {"requesterId": "user-unlimited", "amount": 50})

    assert response.status_code == 200
    assert response.body["data"]["unlimited"] is True
    assert runtime.store.get_account("user-unlimited").remaining == 0


def test_unknown_and_missing_requester(runtime: ServiceRuntime) -> None:
    unknown = _spend(runtime, {"requesterId": "ghost", "amount": 1})
    missing = _spend(runtime, {"amount": 1})

    assert unknown.status_code == 404
    assert missing.status_code == 400


def test_get_is_method_not_allowed(runtime: ServiceRuntime) -> None:
    response = credits_use.process_request(
        method="GET",
        headers=ORIGIN,
        raw_body="",
        runtime=runtime,
    )

    assert response.status_code == 405
