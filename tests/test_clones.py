"""Tests for clone tone analysis and storage."""

from __future__ import annotations

from typing import Any

import requests

from services.clones import DEFAULT_PERSONALITY, DEFAULT_TONE, CloneBuilder
from services.store import ContentStore


def test_save_clone_stores_inactive_clone_with_analyzed_tone(
    store: ContentStore, fake_providers: Any
) -> None:
    builder = CloneBuilder(store=store, generator=fake_providers.generator)

    clone = builder.save_clone(
        requester_id="user-1",
        clone_name="Founder voice",
        sample_post="We shipped. Here's what broke.",
    )

    assert clone.tone == "Warm and direct"
    assert clone.personality == ("Candid",)
    assert clone.is_active is False
    assert clone.sample_posts == ("We shipped. Here's what broke.",)
    assert [stored.id for stored in builder.list_clones("user-1")] == [clone.id]


def test_fenced_json_answer_is_accepted(store: ContentStore, fake_providers: Any) -> None:
    fake_providers.generator.tone_answer = (
        'Sure!\n```json\n{"tone": "Playful", "personality": ["Witty", "Warm"]}\n```'
    )
    builder = CloneBuilder(store=store, generator=fake_providers.generator)

    analysis = builder.analyze_tone("sample")

    assert analysis.tone == "Playful"
    assert analysis.personality == ("Witty", "Warm")
    assert analysis.source_fallback is False


def test_unparseable_answer_falls_back_to_default_tone(
    store: ContentStore, fake_providers: Any
) -> None:
    fake_providers.generator.tone_answer = "The tone is friendly."
    builder = CloneBuilder(store=store, generator=fake_providers.generator)

    analysis = builder.analyze_tone("sample")

    assert analysis.tone == DEFAULT_TONE
    assert analysis.personality == DEFAULT_PERSONALITY
    assert analysis.source_fallback is True


def test_provider_failure_falls_back_to_default_tone(
    store: ContentStore, fake_providers: Any
) -> None:
    fake_providers.generator.fail_with = requests.Timeout("slow")
    builder = CloneBuilder(store=store, generator=fake_providers.generator)

    clone = builder.save_clone(requester_id="user-1", clone_name="Me", sample_post="sample")

    assert clone.tone == DEFAULT_TONE
    assert clone.personality == DEFAULT_PERSONALITY
