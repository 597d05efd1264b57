"""Centralized configuration loading for the post pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when required configuration is missing or invalid."""


PROVIDER_MODE_LIVE = "live"
PROVIDER_MODE_FIXTURE = "fixture"
VALID_PROVIDER_MODES = {PROVIDER_MODE_LIVE, PROVIDER_MODE_FIXTURE}

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_NOTIFY_FROM_EMAIL = "Chaitra AI <noreply@chaitra.ai>"


@dataclass(frozen=True)
class AppConfig:
    """Typed application configuration loaded from environment variables."""

    provider_mode: str
    gemini_api_key: str | None
    gemini_model: str
    undetectable_api_key: str | None
    sapling_api_key: str | None
    languagetool_api_key: str | None
    resend_api_key: str | None
    notify_from_email: str
    apify_api_key: str | None
    phantombuster_api_key: str | None
    phantom_id: str | None
    data_db_path: Path
    failure_log_dir: Path
    generation_timeout_seconds: float = 30.0
    default_stage_timeout_seconds: float = 10.0
    humanizer_submit_timeout_seconds: float = 60.0
    enrichment_poll_attempts: int = 12
    enrichment_poll_delay_seconds: float = 5.0
    humanizer_poll_attempts: int = 20
    humanizer_poll_delay_seconds: float = 3.0
    enable_dry_run: bool = False
    allowed_origins: tuple[str, ...] = ()

    @property
    def is_fixture_mode(self) -> bool:
        return self.provider_mode == PROVIDER_MODE_FIXTURE

    @property
    def enrichment_configured(self) -> bool:
        """Whether a profile scraper is available for enrichment."""
        return self.is_fixture_mode or bool(self.apify_api_key)

    @property
    def automation_configured(self) -> bool:
        """Whether an automation target exists; unconfigured means disabled."""
        if not self.phantom_id:
            return False
        return self.is_fixture_mode or bool(self.phantombuster_api_key)


_REQUIRED_ENV_VARS = (
    "PROVIDER_MODE",
    "DATA_DB_PATH",
    "FAILURE_LOG_DIR",
)

# Provider keys that must be present before live traffic is accepted.
_REQUIRED_LIVE_ENV_VARS = (
    "GEMINI_API_KEY",
    "UNDETECTABLE_API_KEY",
    "SAPLING_API_KEY",
    "RESEND_API_KEY",
    "NOTIFY_FROM_EMAIL",
)


def _get_required_env(name: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        raise ConfigError(f"Missing required environment variable: {name}")
    return raw.strip()


def _get_optional_env(name: str) -> str | None:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _parse_bool(name: str, raw: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {raw!r}")


def _parse_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = _get_optional_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc

    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_seconds(name: str, default: float) -> float:
    raw = _get_optional_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid number of seconds for {name}: {raw!r}") from exc

    if value < 0:
        raise ConfigError(f"{name} must be >= 0, got {value}")
    return value


def _parse_csv(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return tuple(values)


def _validate_required_envs(provider_mode: str) -> None:
    for name in _REQUIRED_ENV_VARS:
        _get_required_env(name)
    if provider_mode == PROVIDER_MODE_LIVE:
        for name in _REQUIRED_LIVE_ENV_VARS:
            _get_required_env(name)


@lru_cache(maxsize=1)
def get_config(load_dotenv_file: bool = True) -> AppConfig:
    """Load and cache app configuration."""
    if load_dotenv_file:
        load_dotenv()

    provider_mode = _get_required_env("PROVIDER_MODE").lower()
    if provider_mode not in VALID_PROVIDER_MODES:
        raise ConfigError(
            f"Invalid PROVIDER_MODE: {provider_mode!r}. "
            f"Expected one of {sorted(VALID_PROVIDER_MODES)}"
        )

    _validate_required_envs(provider_mode)

    dry_run_raw = _get_optional_env("ENABLE_DRY_RUN")

    return AppConfig(
        provider_mode=provider_mode,
        gemini_api_key=_get_optional_env("GEMINI_API_KEY"),
        gemini_model=_get_optional_env("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        undetectable_api_key=_get_optional_env("UNDETECTABLE_API_KEY"),
        sapling_api_key=_get_optional_env("SAPLING_API_KEY"),
        languagetool_api_key=_get_optional_env("LANGUAGETOOL_API_KEY"),
        resend_api_key=_get_optional_env("RESEND_API_KEY"),
        notify_from_email=_get_optional_env("NOTIFY_FROM_EMAIL") or DEFAULT_NOTIFY_FROM_EMAIL,
        apify_api_key=_get_optional_env("APIFY_API_KEY"),
        phantombuster_api_key=_get_optional_env("PHANTOMBUSTER_API_KEY"),
        phantom_id=_get_optional_env("PHANTOM_ID"),
        data_db_path=Path(_get_required_env("DATA_DB_PATH")),
        failure_log_dir=Path(_get_required_env("FAILURE_LOG_DIR")),
        generation_timeout_seconds=_parse_seconds("GENERATION_TIMEOUT_SECONDS", 30.0),
        default_stage_timeout_seconds=_parse_seconds("DEFAULT_STAGE_TIMEOUT_SECONDS", 10.0),
        humanizer_submit_timeout_seconds=_parse_seconds(
            "HUMANIZER_SUBMIT_TIMEOUT_SECONDS", 60.0
        ),
        enrichment_poll_attempts=_parse_int("ENRICHMENT_POLL_ATTEMPTS", 12, minimum=1),
        enrichment_poll_delay_seconds=_parse_seconds("ENRICHMENT_POLL_DELAY_SECONDS", 5.0),
        humanizer_poll_attempts=_parse_int("HUMANIZER_POLL_ATTEMPTS", 20, minimum=1),
        humanizer_poll_delay_seconds=_parse_seconds("HUMANIZER_POLL_DELAY_SECONDS", 3.0),
        enable_dry_run=_parse_bool("ENABLE_DRY_RUN", dry_run_raw) if dry_run_raw else False,
        allowed_origins=_parse_csv(os.environ.get("ALLOWED_ORIGINS")),
    )


def reset_config_cache() -> None:
    """Clear memoized configuration for tests and process reloads."""
    get_config.cache_clear()
