"""Shared utilities: logging, telemetry and version lookup."""

from __future__ import annotations

from .logger_manager import LoggerConfig, LoggerManager, MetricType
from .version import get_runtime_version

__all__ = ["LoggerConfig", "LoggerManager", "MetricType", "get_runtime_version"]
