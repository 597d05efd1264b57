"""Service runtime wiring shared by the HTTP handlers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from config import AppConfig, get_config
from services.clones import CloneBuilder
from services.ledger import UsageLedger
from services.observability import StructuredLogger, get_logger
from services.orchestrator import ContentPipeline
from services.providers import ProviderSet, build_providers
from services.renderer import NotificationRenderer
from services.runtime_paths import bootstrap_runtime_paths
from services.store import ContentStore


@dataclass(frozen=True)
class ServiceRuntime:
    """Container for initialized runtime dependencies."""

    config: AppConfig
    store: ContentStore
    providers: ProviderSet
    ledger: UsageLedger
    pipeline: ContentPipeline
    clone_builder: CloneBuilder


def build_runtime(
    config: AppConfig,
    *,
    providers: ProviderSet | None = None,
    logger: StructuredLogger | None = None,
) -> ServiceRuntime:
    store = bootstrap_runtime_paths(config)
    logger = logger or get_logger()
    providers = providers or build_providers(config)

    ledger = UsageLedger(store, logger=logger)
    pipeline = ContentPipeline(
        config=config,
        store=store,
        providers=providers,
        ledger=ledger,
        renderer=NotificationRenderer(),
        logger=logger,
    )
    clone_builder = CloneBuilder(store=store, generator=providers.generator, logger=logger)
    return ServiceRuntime(
        config=config,
        store=store,
        providers=providers,
        ledger=ledger,
        pipeline=pipeline,
        clone_builder=clone_builder,
    )


@lru_cache(maxsize=1)
def get_runtime() -> ServiceRuntime:
    """Build the runtime once per process from environment configuration."""
    return build_runtime(get_config())


def reset_runtime_cache() -> None:
    get_runtime.cache_clear()
