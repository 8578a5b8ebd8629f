"""Logger manager with colored console output, JSON records and run counters.

The lifecycle manager and HTTP layer share one `LoggerManager` so every run
event lands on the same handlers, and so the counters it keeps (submissions,
polls, terminal outcomes) can be inspected by tests and the CLI.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
import datetime
from enum import Enum
import json
import logging
from logging import Handler, Logger, LogRecord, getLevelName
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
import threading
from typing import Any, ClassVar

import colorlog


class MetricType(Enum):
    """Enum for supported metric types."""

    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class LoggerConfig:
    """Configuration for LoggerManager."""

    name: str = "actor_runner"
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_file_name: str = "actor-runner.log"
    max_file_size_mb: int = 10
    backup_count: int = 3
    structured_logging: bool = False
    telemetry_enabled: bool = True
    log_colors: dict[str, str] | None = None

    DEFAULT_LOG_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "red,bg_white",
    }

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir).resolve()
        self.log_colors = self.log_colors or dict(self.DEFAULT_LOG_COLORS)


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: LogRecord) -> str:
        payload = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "context": getattr(record, "context", {}),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class LoggerManager:
    """Configures a named logger and keeps in-process telemetry counters."""

    def __init__(self, config: LoggerConfig | None = None) -> None:
        self.config = config or LoggerConfig()
        self._metrics: dict[str, dict[str, Any]] = defaultdict(
            lambda: {"type": MetricType.COUNTER.value, "value": 0, "tags": {}}
        )
        self._metrics_lock = threading.Lock()
        self._logger = self._configure_logger()

    @property
    def logger(self) -> Logger:
        return self._logger

    def get_logger(self, suffix: str | None = None) -> Logger:
        """Return the managed logger, or a child sharing its handlers."""
        if not suffix:
            return self._logger
        return self._logger.getChild(suffix)

    def _console_handler(self) -> Handler:
        handler = colorlog.StreamHandler(sys.stderr)
        if self.config.structured_logging:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(
                colorlog.ColoredFormatter(
                    "%(log_color)s%(asctime)s - [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                    log_colors=self.config.log_colors,
                )
            )
        return handler

    def _file_handler(self) -> Handler | None:
        if self.config.log_dir is None:
            return None
        try:
            self.config.log_dir.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                self.config.log_dir / self.config.log_file_name,
                maxBytes=self.config.max_file_size_mb * 1024 * 1024,
                backupCount=self.config.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            print(f"Failed to create RotatingFileHandler: {exc}", file=sys.stderr)
            return None
        handler.setFormatter(
            StructuredFormatter()
            if self.config.structured_logging
            else logging.Formatter(
                "%(asctime)s - [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        return handler

    def _configure_logger(self) -> Logger:
        logger = logging.getLogger(self.config.name)
        logger.setLevel(getLevelName(self.config.log_level))
        if getattr(logger, "_actor_runner_configured", False):
            return logger
        logger.addHandler(self._console_handler())
        file_handler = self._file_handler()
        if file_handler is not None:
            logger.addHandler(file_handler)
        logger.propagate = False
        logger._actor_runner_configured = True  # type: ignore[attr-defined]
        return logger

    def log_metric(
        self,
        metric_name: str,
        value: int | float = 1,
        metric_type: MetricType = MetricType.COUNTER,
        tags: Mapping[str, str] | None = None,
    ) -> None:
        """Record a counter increment or a gauge reading."""
        if not self.config.telemetry_enabled:
            return
        tags_dict = dict(tags or {})
        with self._metrics_lock:
            metric = self._metrics[metric_name]
            metric["type"] = metric_type.value
            metric["tags"] = tags_dict
            if metric_type is MetricType.COUNTER:
                metric["value"] += value
            else:
                metric["value"] = value
        self._logger.debug(
            f"Metric recorded: {metric_name} = {value}",
            extra={"context": {"metric": metric_name, "tags": tags_dict}},
        )

    def metric_value(self, metric_name: str) -> int | float:
        with self._metrics_lock:
            metric = self._metrics.get(metric_name)
            return metric["value"] if metric else 0

    def get_metrics(self) -> dict[str, dict[str, Any]]:
        with self._metrics_lock:
            return {name: dict(metric) for name, metric in self._metrics.items()}

    def reset_metrics(self) -> None:
        with self._metrics_lock:
            self._metrics.clear()

    def flush(self) -> None:
        for handler in self._logger.handlers:
            handler.flush()


__all__ = ["LoggerConfig", "LoggerManager", "MetricType", "StructuredFormatter"]
