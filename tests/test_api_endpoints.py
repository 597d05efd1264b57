"""Tests for the status, credits and clones endpoints."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest

from api import clones, credits, status
from api._shared import parse_query, read_request
from config import AppConfig
from runtime import ServiceRuntime, build_runtime
from services.store import ContentStore

ORIGIN = {"Origin": "https://app.example.com"}


@pytest.fixture
def runtime(app_config: AppConfig, store: ContentStore, fake_providers: Any) -> ServiceRuntime:
    del store
    return build_runtime(app_config, providers=fake_providers.as_set())


def test_status_reports_configured_providers(runtime: ServiceRuntime) -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    response = status.process_request(method="GET", headers=ORIGIN, runtime=runtime, now=now)

    assert response.status_code == 200
    data = response.body["data"]
    assert data["providerMode"] == "fixture"
    assert data["timestamp"] == "2026-03-01T12:00:00+00:00"
    assert all(data["apis"].values())


def test_status_reflects_missing_live_keys(app_config: AppConfig) -> None:
    live = replace(app_config, provider_mode="live", apify_api_key=None, languagetool_api_key=None)

    apis = status.provider_status(live)

    assert apis["gemini"] is True
    assert apis["apify"] is False
    assert apis["languagetool"] is False
    assert apis["phantombuster"] is True


def test_status_rejects_post(runtime: ServiceRuntime) -> None:
    response = status.process_request(method="POST", headers=ORIGIN, runtime=runtime)

    assert response.status_code == 405


def test_credits_returns_balance_and_plan(runtime: ServiceRuntime) -> None:
    response = credits.process_request(
        method="GET",
        headers=ORIGIN,
        query={"requesterId": "user-metered"},
        runtime=runtime,
    )

    assert response.status_code == 200
    assert response.body["data"] == {"credits": 3, "plan": "metered", "unlimited": False}


def test_credits_unlimited_plan(runtime: ServiceRuntime) -> None:
    response = credits.process_request(
        method="GET",
        headers=ORIGIN,
        query={"requesterId": "user-unlimited"},
        runtime=runtime,
    )

    assert response.body["data"]["unlimited"] is True


def test_credits_missing_and_unknown_requester(runtime: ServiceRuntime) -> None:
    missing = credits.process_request(method="GET", headers=ORIGIN, query={}, runtime=runtime)
    unknown = credits.process_request(
        method="GET",
        headers=ORIGIN,
        query={"requesterId": "ghost"},
        runtime=runtime,
    )

    assert missing.status_code == 400
    assert unknown.status_code == 404


def test_clone_save_then_list(runtime: ServiceRuntime) -> None:
    saved = clones.process_request(
        method="POST",
        headers=ORIGIN,
        raw_body=json.dumps(
            {
                "requesterId": "user-metered",
                "cloneName": "Founder voice",
                "samplePost": "We shipped and learned.",
            }
        ),
        runtime=runtime,
    )
    listed = clones.process_request(
        method="GET",
        headers=ORIGIN,
        query={"requesterId": "user-metered"},
        runtime=runtime,
    )

    assert saved.status_code == 200
    clone = saved.body["data"]["clone"]
    assert clone["name"] == "Founder voice"
    assert clone["isActive"] is False
    assert listed.body["data"]["total"] == 1
    assert listed.body["data"]["clones"][0]["id"] == clone["id"]


def test_clone_save_requires_fields(runtime: ServiceRuntime) -> None:
    response = clones.process_request(
        method="POST",
        headers=ORIGIN,
        raw_body=json.dumps({"requesterId": "user-metered"}),
        runtime=runtime,
    )

    assert response.status_code == 400


def test_clone_list_requires_requester(runtime: ServiceRuntime) -> None:
    response = clones.process_request(method="GET", headers=ORIGIN, query={}, runtime=runtime)

    assert response.status_code == 400


class _FakeRequest:
    method = "GET"
    headers = {"Origin": "https://app.example.com"}
    body = b""
    url = "/api/credits?requesterId=user-metered&extra=1"


def test_read_request_parses_query_from_url() -> None:
    inbound = read_request(_FakeRequest())

    assert inbound.method == "GET"
    assert inbound.query == {"requesterId": "user-metered", "extra": "1"}
    assert parse_query("/api/status") == {}


def test_credits_handler_uses_query_from_url(
    monkeypatch: pytest.MonkeyPatch, runtime: ServiceRuntime
) -> None:
    monkeypatch.setattr(credits, "get_runtime", lambda: runtime)

    body, status_code, _ = credits.handler(_FakeRequest())

    assert status_code == 200
    assert json.loads(body)["data"]["credits"] == 3


class _BinaryBodyRequest:
    method = "POST"
    headers: dict[str, str] = {}
    body = b"\xff\xfe{"
    url = "/api/clones"


def test_read_request_replaces_undecodable_bytes() -> None:
    inbound = read_request(_BinaryBodyRequest())

    assert inbound.raw_body == "\ufffd\ufffd{"
