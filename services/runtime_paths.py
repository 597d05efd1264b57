"""Runtime directory/database bootstrap helpers."""

from __future__ import annotations

from config import AppConfig
from services.store import ContentStore


def bootstrap_runtime_paths(config: AppConfig) -> ContentStore:
    """Create runtime directories and initialize the record store schema."""
    config.data_db_path.parent.mkdir(parents=True, exist_ok=True)
    config.failure_log_dir.mkdir(parents=True, exist_ok=True)

    store = ContentStore(config.data_db_path)
    store.initialize()
    return store
