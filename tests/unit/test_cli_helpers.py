from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from actor_runner.cli.helpers import (
    format_actor_line,
    format_field_errors,
    load_config,
    load_input_file,
    logger_config_from,
    parse_assignments,
    settings_from_config,
    write_json,
)
from actor_runner.client.base import ActorSummary
from actor_runner.enums import ActorSource, ValidationReason
from actor_runner.schema.models import FieldError

LOGGER = logging.getLogger("tests.cli")


def test_missing_config_means_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="tests.cli"):
        assert load_config(tmp_path / "absent.yml", LOGGER) == {}
    assert "Config file not found" in caplog.text


def test_config_sections_feed_settings_and_logging(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text(
        "runner:\n  timeout_budget: 120\n  poll_interval: 5\n"
        "logging:\n  log_level: debug\n  structured_logging: true\n",
        encoding="utf-8",
    )
    config = load_config(path, LOGGER)
    settings = settings_from_config(config)
    assert settings.timeout_budget == 120.0
    assert settings.poll_interval == 5.0
    logging_config = logger_config_from(config, None)
    assert logging_config.log_level == "DEBUG"
    assert logging_config.structured_logging is True
    assert logger_config_from(config, "ERROR").log_level == "ERROR"


@pytest.mark.parametrize("content", ["- a\n- b\n", "runner: [\n"])
def test_bad_config_files_raise(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.yml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_config(path, LOGGER)


def test_empty_config_file_is_empty(tmp_path: Path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(path, LOGGER) == {}


def test_runner_section_must_be_a_mapping() -> None:
    with pytest.raises(RuntimeError):
        settings_from_config({"runner": ["nope"]})


def test_parse_assignments_keeps_raw_text() -> None:
    assert parse_assignments(["a=1", " b =x=y", "c="]) == {
        "a": "1",
        "b": "x=y",
        "c": "",
    }
    with pytest.raises(ValueError, match="Expected key=value"):
        parse_assignments(["novalue"])
    with pytest.raises(ValueError):
        parse_assignments(["=1"])


def test_load_input_file_requires_an_object(tmp_path: Path) -> None:
    good = tmp_path / "in.json"
    good.write_text('{"maxCrawlPages": 3}', encoding="utf-8")
    assert load_input_file(good) == {"maxCrawlPages": 3}
    bad = tmp_path / "list.json"
    bad.write_text("[1]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_input_file(bad)


def test_format_field_errors_is_sorted() -> None:
    errors = {
        FieldError(field="z", reason=ValidationReason.TOO_LONG, detail="long"),
        FieldError(field="a", reason=ValidationReason.REQUIRED_MISSING, detail="req"),
    }
    assert format_field_errors(errors) == [
        "a: REQUIRED_MISSING - req",
        "z: TOO_LONG - long",
    ]


def test_format_actor_line() -> None:
    actor = ActorSummary(
        id="x1",
        name="crawler",
        username="me",
        description="Crawls\nsecond line",
        source=ActorSource.PUBLIC,
    )
    assert format_actor_line(actor) == "x1\t[public]\tme/crawler - Crawls"


def test_write_json_to_file_and_stdout(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    out = tmp_path / "nested" / "out.json"
    write_json([{"a": 1}], out)
    assert json.loads(out.read_text(encoding="utf-8")) == [{"a": 1}]
    write_json({"b": 2}, None)
    assert json.loads(capsys.readouterr().out) == {"b": 2}
