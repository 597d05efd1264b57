"""Shared pytest fixtures."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from config import AppConfig
from models import ProfileSnapshot, QuotaAccount, QuotaPlan
from services.ledger import UsageLedger
from services.orchestrator import ContentPipeline
from services.providers import ProviderSet
from services.runtime_paths import bootstrap_runtime_paths
from services.store import ContentStore


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    data_dir = tmp_path / "data"
    return AppConfig(
        provider_mode="fixture",
        gemini_api_key="gm-test",
        gemini_model="gemini-2.0-flash",
        undetectable_api_key="ud-test",
        sapling_api_key="sp-test",
        languagetool_api_key=None,
        resend_api_key="re_test",
        notify_from_email="Posts <noreply@example.com>",
        apify_api_key="apify-test",
        phantombuster_api_key="pb-test",
        phantom_id="phantom-123",
        data_db_path=data_dir / "posts.db",
        failure_log_dir=data_dir / "failures",
        enrichment_poll_delay_seconds=0.0,
        humanizer_poll_delay_seconds=0.0,
        enable_dry_run=True,
        allowed_origins=("https://app.example.com",),
    )


@pytest.fixture
def store(app_config: AppConfig) -> ContentStore:
    content_store = bootstrap_runtime_paths(app_config)
    content_store.upsert_account(
        QuotaAccount(requester_id="user-metered", plan=QuotaPlan.METERED, remaining=3)
    )
    content_store.upsert_account(
        QuotaAccount(requester_id="user-empty", plan=QuotaPlan.METERED, remaining=0)
    )
    content_store.upsert_account(
        QuotaAccount(requester_id="user-unlimited", plan=QuotaPlan.UNLIMITED, remaining=0)
    )
    return content_store


class _Recorder:
    """Base for fakes: remembers inputs into a shared ordered call log."""

    name = "provider"

    def __init__(self, call_log: list[str]) -> None:
        self.calls: list[Any] = []
        self.fail_with: Exception | None = None
        self._call_log = call_log

    def _record(self, value: Any) -> None:
        self.calls.append(value)
        self._call_log.append(self.name)
        if self.fail_with is not None:
            raise self.fail_with


class FakeEnricher(_Recorder):
    name = "enrichment"

    def __init__(self, call_log: list[str]) -> None:
        super().__init__(call_log)
        self.profile = ProfileSnapshot(
            full_name="Sarah Johnson",
            headline="Senior Marketing Manager",
            about="Marketing professional. " * 20,
            location="San Francisco, CA",
            industry="Marketing",
        )

    def fetch_profile(self, profile_url: str) -> ProfileSnapshot:
        self._record(profile_url)
        return self.profile


class FakeGenerator(_Recorder):
    name = "generation"

    def __init__(self, call_log: list[str]) -> None:
        super().__init__(call_log)
        self.tone_answer = json.dumps({"tone": "Warm and direct", "personality": ["Candid"]})

    def generate_post(self, prompt: str) -> str:
        self._record(prompt)
        return "Shipping beats planning.\n\nWhat will you ship this week?"

    def analyze_tone(self, sample_post: str) -> str:
        self._record(sample_post)
        return self.tone_answer


class FakeHumanizer(_Recorder):
    name = "humanization"

    def humanize(self, content: str) -> str:
        self._record(content)
        return content.replace("Shipping", "Honestly, shipping")


class FakeGrammar(_Recorder):
    name = "grammar"

    def __init__(self, call_log: list[str]) -> None:
        super().__init__(call_log)
        self.matches: list[dict[str, Any]] = []

    def check(self, text: str) -> list[dict[str, Any]]:
        self._record(text)
        return self.matches


class FakeDetector(_Recorder):
    name = "detection"

    def __init__(self, call_log: list[str]) -> None:
        super().__init__(call_log)
        self.probability = 0.3

    def score(self, text: str) -> float:
        self._record(text)
        return self.probability


class FakeNotifier(_Recorder):
    name = "notification"

    def send(self, *, to: str, subject: str, html: str) -> str:
        self._record({"to": to, "subject": subject, "html": html})
        return f"email-{len(self.calls)}"


class FakeAutomation(_Recorder):
    name = "automation"

    def launch(self) -> str:
        self._record(None)
        return "container-1"


@dataclass
class FakeProviders:
    call_log: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.enricher = FakeEnricher(self.call_log)
        self.generator = FakeGenerator(self.call_log)
        self.humanizer = FakeHumanizer(self.call_log)
        self.grammar = FakeGrammar(self.call_log)
        self.detector = FakeDetector(self.call_log)
        self.notifier = FakeNotifier(self.call_log)
        self.automation = FakeAutomation(self.call_log)

    def as_set(self, *, with_enricher: bool = True, with_automation: bool = True) -> ProviderSet:
        return ProviderSet(
            enricher=self.enricher if with_enricher else None,
            generator=self.generator,
            humanizer=self.humanizer,
            grammar=self.grammar,
            detector=self.detector,
            notifier=self.notifier,
            automation=self.automation if with_automation else None,
        )


@pytest.fixture
def fake_providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
def pipeline(
    app_config: AppConfig,
    store: ContentStore,
    fake_providers: FakeProviders,
) -> ContentPipeline:
    return ContentPipeline(
        config=app_config,
        store=store,
        providers=fake_providers.as_set(),
        ledger=UsageLedger(store),
    )
