"""Schema-driven input forms and run lifecycle management for provider actors."""

from __future__ import annotations

from actor_runner.utilities.version import get_runtime_version

__version__ = get_runtime_version()

__all__ = ["__version__"]
