"""Runtime version resolution helpers."""

from __future__ import annotations

from importlib import metadata

DISTRIBUTION_NAME = "actor-runner"


def get_runtime_version() -> str:
    """Resolve the installed distribution version, or a dev marker."""
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return "dev+unknown"
