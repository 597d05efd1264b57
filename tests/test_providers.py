"""Tests for provider selection by mode."""

from __future__ import annotations

from dataclasses import replace

from config import AppConfig
from services.automation import PhantomBusterLauncher
from services.fixtures import FixtureContentGenerator, FixtureProfileEnricher
from services.llm import GeminiClient
from services.profile_scraper import ApifyProfileScraper
from services.providers import build_providers


def test_fixture_mode_builds_fixture_providers(app_config: AppConfig) -> None:
    providers = build_providers(app_config)

    assert isinstance(providers.generator, FixtureContentGenerator)
    assert isinstance(providers.enricher, FixtureProfileEnricher)
    assert providers.automation is not None


def test_fixture_mode_without_agent_disables_automation(app_config: AppConfig) -> None:
    providers = build_providers(replace(app_config, phantom_id=None))

    assert providers.automation is None


def test_live_mode_builds_live_providers(app_config: AppConfig) -> None:
    providers = build_providers(replace(app_config, provider_mode="live"))

    assert isinstance(providers.generator, GeminiClient)
    assert isinstance(providers.enricher, ApifyProfileScraper)
    assert isinstance(providers.automation, PhantomBusterLauncher)


def test_live_mode_without_optional_keys_leaves_stages_unconfigured(
    app_config: AppConfig,
) -> None:
    providers = build_providers(
        replace(app_config, provider_mode="live", apify_api_key=None, phantombuster_api_key=None)
    )

    assert providers.enricher is None
    assert providers.automation is None
