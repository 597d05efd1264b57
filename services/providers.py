"""Provider capability interfaces and their selection by provider mode."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from config import AppConfig
from models import ProfileSnapshot


class ProfileEnricher(Protocol):
    def fetch_profile(self, profile_url: str) -> ProfileSnapshot: ...


class ContentGenerator(Protocol):
    def generate_post(self, prompt: str) -> str: ...

    def analyze_tone(self, sample_post: str) -> str: ...


class Humanizer(Protocol):
    def humanize(self, content: str) -> str: ...


class GrammarChecker(Protocol):
    def check(self, text: str) -> list[dict[str, Any]]: ...


class AIDetector(Protocol):
    def score(self, text: str) -> float: ...


class Notifier(Protocol):
    def send(self, *, to: str, subject: str, html: str) -> str: ...


class AutomationLauncher(Protocol):
    def launch(self) -> str: ...


@dataclass(frozen=True)
class ProviderSet:
    """One implementation per stage; ``None`` marks an unconfigured optional stage."""

    enricher: ProfileEnricher | None
    generator: ContentGenerator
    humanizer: Humanizer
    grammar: GrammarChecker
    detector: AIDetector
    notifier: Notifier
    automation: AutomationLauncher | None


def build_providers(
    config: AppConfig,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> ProviderSet:
    """Select live or fixture providers once, from ``config.provider_mode``."""
    if config.is_fixture_mode:
        return _build_fixture_providers(config)
    return _build_live_providers(config, sleep=sleep)


def _build_fixture_providers(config: AppConfig) -> ProviderSet:
    from services import fixtures

    return ProviderSet(
        enricher=fixtures.FixtureProfileEnricher(),
        generator=fixtures.FixtureContentGenerator(),
        humanizer=fixtures.FixtureHumanizer(),
        grammar=fixtures.FixtureGrammarChecker(),
        detector=fixtures.FixtureAIDetector(),
        notifier=fixtures.FixtureNotifier(),
        automation=fixtures.FixtureAutomationLauncher() if config.automation_configured else None,
    )


def _build_live_providers(config: AppConfig, *, sleep: Callable[[float], None]) -> ProviderSet:
    from services.automation import PhantomBusterLauncher
    from services.detector import SaplingDetector
    from services.grammar import LanguageToolChecker
    from services.humanizer import UndetectableHumanizer
    from services.llm import GeminiClient
    from services.profile_scraper import ApifyProfileScraper
    from services.sender import ResendNotifier

    return ProviderSet(
        enricher=ApifyProfileScraper(config, sleep=sleep) if config.enrichment_configured else None,
        generator=GeminiClient(config),
        humanizer=UndetectableHumanizer(config, sleep=sleep),
        grammar=LanguageToolChecker(config),
        detector=SaplingDetector(config),
        notifier=ResendNotifier(config),
        automation=PhantomBusterLauncher(config) if config.automation_configured else None,
    )
