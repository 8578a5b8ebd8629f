"""Configuration helpers for the repository."""

from __future__ import annotations

from .defaults import DEFAULT_BASE_URL, RUNNER_DEFAULTS
from .env import (
    RunnerSettings,
    load_environment,
    settings_from_env,
    token_from_env,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "RUNNER_DEFAULTS",
    "RunnerSettings",
    "load_environment",
    "settings_from_env",
    "token_from_env",
]
