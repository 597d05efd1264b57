"""Tests for runtime path bootstrap logic."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from config import AppConfig
from services.runtime_paths import bootstrap_runtime_paths


def test_bootstrap_runtime_paths_creates_expected_artifacts(
    tmp_path: Path, app_config: AppConfig
) -> None:
    config = replace(
        app_config,
        data_db_path=tmp_path / "state" / "db" / "posts.db",
        failure_log_dir=tmp_path / "state" / "failures",
    )

    store = bootstrap_runtime_paths(config)

    assert (tmp_path / "state" / "failures").exists()
    assert (tmp_path / "state" / "db" / "posts.db").exists()
    assert store.db_path == config.data_db_path
    assert store.list_posts("anyone") == []


def test_bootstrap_runtime_paths_is_idempotent(app_config: AppConfig) -> None:
    first = bootstrap_runtime_paths(app_config)
    first.insert_post(requester_id="user-1", content="Post", ai_score=10, human_score=90)

    second = bootstrap_runtime_paths(app_config)

    assert len(second.list_posts("user-1")) == 1
