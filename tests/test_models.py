"""Tests for core pipeline models."""

from __future__ import annotations

import pytest

from models import (
    STAGE_ORDER,
    ContentRequest,
    PipelineRun,
    QuotaAccount,
    QuotaPlan,
    StageName,
    split_scores,
)


@pytest.mark.parametrize(
    ("probability", "expected"),
    [
        (0.0, (0, 100)),
        (1.0, (100, 0)),
        (0.2, (20, 80)),
        (0.125, (13, 87)),
        (0.005, (1, 99)),
        (0.994, (99, 1)),
        (-0.5, (0, 100)),
        (1.5, (100, 0)),
    ],
)
def test_split_scores_rounds_half_up_and_sums_to_100(
    probability: float, expected: tuple[int, int]
) -> None:
    assert split_scores(probability) == expected
    assert sum(split_scores(probability)) == 100


def test_stage_order_is_fixed() -> None:
    assert STAGE_ORDER == (
        StageName.ENRICHMENT,
        StageName.GENERATION,
        StageName.HUMANIZATION,
        StageName.GRAMMAR,
        StageName.DETECTION,
        StageName.NOTIFICATION,
        StageName.AUTOMATION,
    )


def test_pipeline_run_defaults() -> None:
    run = PipelineRun(
        request=ContentRequest(prompt="Topic", notify_address="a@b.co", requester_id="u1")
    )

    assert run.enriched_prompt == "Topic"
    assert run.was_enriched is False
    assert set(run.step_flags) == set(STAGE_ORDER)
    assert not any(run.step_flags.values())
    assert (run.ai_score, run.human_score) == (0, 100)


def test_record_stage_tracks_both_flag_sets() -> None:
    run = PipelineRun(
        request=ContentRequest(prompt="Topic", notify_address="a@b.co", requester_id="u1")
    )

    run.record_stage(StageName.HUMANIZATION, completed=True, used_provider=False)

    assert run.step_flags[StageName.HUMANIZATION] is True
    assert run.provider_flags[StageName.HUMANIZATION] is False


def test_quota_account_capacity() -> None:
    assert QuotaAccount("u", QuotaPlan.METERED, 1).has_capacity
    assert not QuotaAccount("u", QuotaPlan.METERED, 0).has_capacity
    assert QuotaAccount("u", QuotaPlan.UNLIMITED, 0).has_capacity
