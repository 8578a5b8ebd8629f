"""Support routines for the actor-runner CLI."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
import sys
from typing import Any

import yaml

from actor_runner.client.base import ActorSummary
from actor_runner.config.env import RunnerSettings
from actor_runner.schema.models import FieldError
from actor_runner.utilities.logger_manager import LoggerConfig


def load_config(
    config_path: str | Path | None, logger: logging.Logger
) -> dict[str, Any]:
    """Load configuration from a YAML file; a missing file means defaults."""
    if not config_path:
        return {}
    path = Path(config_path)
    if not path.exists():
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}
    try:
        with open(path, encoding="utf-8") as file:
            config = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as exc:
        raise RuntimeError(f"Failed to load config file {config_path}: {exc}") from exc
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise RuntimeError(
            f"Config file must contain a mapping, got {type(config).__name__}"
        )
    return config


def settings_from_config(config: Mapping[str, Any]) -> RunnerSettings:
    runner = config.get("runner") or {}
    if not isinstance(runner, Mapping):
        raise RuntimeError("The 'runner' config section must be a mapping")
    return RunnerSettings().with_overrides(runner)


def logger_config_from(
    config: Mapping[str, Any], log_level: str | None
) -> LoggerConfig:
    section = config.get("logging") or {}
    if not isinstance(section, Mapping):
        raise RuntimeError("The 'logging' config section must be a mapping")
    return LoggerConfig(
        log_level=log_level or section.get("log_level", "INFO"),
        log_dir=section.get("log_dir"),
        log_file_name=section.get("log_file_name", "actor-runner.log"),
        structured_logging=bool(section.get("structured_logging", False)),
        telemetry_enabled=bool(section.get("telemetry_enabled", True)),
    )


def parse_assignments(assignments: Iterable[str]) -> dict[str, str]:
    """Turn repeated `key=value` flags into raw form edits."""
    edits: dict[str, str] = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {item!r}")
        edits[key.strip()] = value
    return edits


def load_input_file(path: str | Path) -> dict[str, Any]:
    """Read a JSON object of already-typed input values."""
    with open(path, encoding="utf-8") as file:
        data = json.load(file)
    if not isinstance(data, dict):
        raise ValueError("Input file must contain a JSON object")
    return data


def format_field_errors(errors: Iterable[FieldError]) -> list[str]:
    return [
        f"{error.field}: {error.reason.value} - {error.detail}"
        for error in sorted(errors, key=lambda item: (item.field, item.reason))
    ]


def format_actor_line(actor: ActorSummary) -> str:
    name = f"{actor.username}/{actor.name}" if actor.username else actor.name
    description = (actor.description or "").strip().splitlines()
    suffix = f" - {description[0]}" if description else ""
    return f"{actor.id}\t[{actor.source.value}]\t{name}{suffix}"


def write_json(payload: Any, out_path: str | Path | None) -> None:
    """Pretty-print JSON to `out_path`, or to stdout when no path is given."""
    text = json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    if out_path is None:
        print(text)
        return
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")


def fail(message: str, code: int = 1) -> int:
    print(message, file=sys.stderr)
    return code


__all__ = [
    "fail",
    "format_actor_line",
    "format_field_errors",
    "load_config",
    "load_input_file",
    "logger_config_from",
    "parse_assignments",
    "settings_from_config",
    "write_json",
]
