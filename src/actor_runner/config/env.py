"""Loads provider credentials and runner settings from the environment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from actor_runner.config.defaults import RUNNER_DEFAULTS

TOKEN_ENV_VARS: tuple[str, ...] = ("APIFY_TOKEN", "APIFY_API_KEY")
BASE_URL_ENV = "APIFY_BASE_URL"
TIMEOUT_ENV = "ACTOR_RUNNER_TIMEOUT"
POLL_INTERVAL_ENV = "ACTOR_RUNNER_POLL_INTERVAL"
HTTP_TIMEOUT_ENV = "ACTOR_RUNNER_HTTP_TIMEOUT"
SKIP_DOTENV_ENV = "ACTOR_RUNNER_SKIP_DOTENV"


@dataclass(frozen=True)
class RunnerSettings:
    """Resolved settings shared by the CLI, HTTP API and clients."""

    base_url: str = str(RUNNER_DEFAULTS["base_url"])
    timeout_budget: float = float(RUNNER_DEFAULTS["timeout_budget"])  # type: ignore[arg-type]
    poll_interval: float = float(RUNNER_DEFAULTS["poll_interval"])  # type: ignore[arg-type]
    http_timeout: float = float(RUNNER_DEFAULTS["http_timeout"])  # type: ignore[arg-type]
    public_actor_limit: int = int(RUNNER_DEFAULTS["public_actor_limit"])  # type: ignore[call-overload]

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.timeout_budget < 0:
            raise ValueError("timeout_budget cannot be negative")
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive")

    def with_overrides(self, overrides: Mapping[str, Any]) -> RunnerSettings:
        """Apply non-null overrides, e.g. the `runner:` block of a YAML config."""
        known = {
            key: value
            for key, value in overrides.items()
            if key in self.__dataclass_fields__ and value is not None
        }
        coerced: dict[str, Any] = {}
        for key, value in known.items():
            current = getattr(self, key)
            coerced[key] = type(current)(value)
        return replace(self, **coerced)


def load_environment(dotenv_path: str | Path | None = None) -> None:
    """Load `.env` files when available, unless explicitly disabled."""
    if os.getenv(SKIP_DOTENV_ENV) == "1":
        return
    path = Path(dotenv_path) if dotenv_path else Path(".env")
    if path.exists():
        load_dotenv(dotenv_path=path)


def token_from_env() -> str | None:
    """Return the first configured provider token, stripped, or None."""
    for env_var in TOKEN_ENV_VARS:
        value = os.getenv(env_var)
        if value and value.strip():
            return value.strip()
    return None


def _float_env(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def settings_from_env(base: RunnerSettings | None = None) -> RunnerSettings:
    """Build settings from environment variables over `base` (or the defaults)."""
    defaults = base or RunnerSettings()
    return RunnerSettings(
        base_url=(os.getenv(BASE_URL_ENV) or defaults.base_url).rstrip("/"),
        timeout_budget=_float_env(TIMEOUT_ENV, defaults.timeout_budget),
        poll_interval=_float_env(POLL_INTERVAL_ENV, defaults.poll_interval),
        http_timeout=_float_env(HTTP_TIMEOUT_ENV, defaults.http_timeout),
        public_actor_limit=defaults.public_actor_limit,
    )


__all__ = [
    "RunnerSettings",
    "SKIP_DOTENV_ENV",
    "TOKEN_ENV_VARS",
    "load_environment",
    "settings_from_env",
    "token_from_env",
]
