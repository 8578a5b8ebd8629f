from __future__ import annotations

from typing import Any

import pytest

from actor_runner.client.scripted import ScriptedClient
from actor_runner.config.env import SKIP_DOTENV_ENV
from actor_runner.enums import RunStatus
from actor_runner.schema.builtin import BUILTIN_SCHEMAS, WEBSITE_CONTENT_CRAWLER
from actor_runner.schema.models import SchemaModel
from actor_runner.utilities.logger_manager import LoggerConfig, LoggerManager

PROFILE_SCHEMA: dict[str, Any] = {
    "title": "Profile",
    "properties": {
        "name": {"type": "string", "title": "Name", "minLength": 2, "maxLength": 5},
        "age": {"type": "integer", "minimum": 1, "maximum": 10},
        "ratio": {"type": "number", "minimum": 0.5},
        "active": {"type": "boolean"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "extra": {"type": "object"},
        "mode": {"type": "string", "enum": ["fast", "slow"], "default": "fast"},
    },
    "required": ["name", "age"],
}


class FakeClock:
    """Monotonic clock that only moves when `sleep` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    async def async_sleep(self, seconds: float) -> None:
        self.sleep(seconds)


@pytest.fixture(autouse=True)
def skip_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(SKIP_DOTENV_ENV, "1")


@pytest.fixture
def logger_manager() -> LoggerManager:
    manager = LoggerManager(LoggerConfig(log_level="DEBUG"))
    manager.reset_metrics()
    return manager


@pytest.fixture
def profile_schema() -> SchemaModel:
    return SchemaModel.from_document(PROFILE_SCHEMA)


@pytest.fixture
def crawler_schema() -> SchemaModel:
    return SchemaModel.from_document(BUILTIN_SCHEMAS[WEBSITE_CONTENT_CRAWLER])


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripted_client() -> ScriptedClient:
    return ScriptedClient(
        statuses=[RunStatus.RUNNING, RunStatus.SUCCEEDED],
        dataset=[{"url": "https://example.com", "text": "hello"}],
        run_id="run-1",
    )
