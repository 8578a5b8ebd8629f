from __future__ import annotations

import asyncio

import pytest
from tests.conftest import FakeClock

from actor_runner.client.scripted import AsyncScriptedClient, ScriptedClient
from actor_runner.enums import ErrorKind, RunStatus
from actor_runner.errors import RunError, TransportError
from actor_runner.runs.lifecycle import RunLifecycleManager
from actor_runner.utilities.logger_manager import LoggerManager

ACTOR = "apify/website-content-crawler"


def _manager(
    client: ScriptedClient, clock: FakeClock, logger_manager: LoggerManager
) -> RunLifecycleManager:
    return RunLifecycleManager(
        AsyncScriptedClient(client),
        logger_manager=logger_manager,
        clock=clock,
        async_sleep=clock.async_sleep,
    )


@pytest.mark.asyncio
async def test_aexecute_returns_dataset_after_success(
    scripted_client: ScriptedClient,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    manager = _manager(scripted_client, fake_clock, logger_manager)
    results = await manager.aexecute(ACTOR, {"q": 1}, 60, 3)
    assert results == [{"url": "https://example.com", "text": "hello"}]
    assert len(scripted_client.status_calls) == 2
    assert scripted_client.dataset_calls == [(ACTOR, "run-1")]
    assert fake_clock.sleeps == [3]
    assert manager.last_handle is not None
    assert manager.last_handle.status is RunStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_aexecute_times_out_like_execute(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(statuses=[RunStatus.RUNNING])
    with pytest.raises(RunError) as excinfo:
        await _manager(client, fake_clock, logger_manager).aexecute(ACTOR, {}, 5, 2)
    assert excinfo.value.kind is ErrorKind.TIMEOUT
    assert len(client.status_calls) == 4
    assert client.dataset_calls == []


@pytest.mark.asyncio
async def test_aexecute_maps_missing_run(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        statuses=[TransportError(ErrorKind.NOT_FOUND, "gone", status_code=404)]
    )
    with pytest.raises(RunError) as excinfo:
        await _manager(client, fake_clock, logger_manager).aexecute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.RUN_NOT_FOUND


@pytest.mark.asyncio
async def test_aexecute_failed_run_skips_dataset(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(statuses=[RunStatus.FAILED], dataset=[1])
    with pytest.raises(RunError) as excinfo:
        await _manager(client, fake_clock, logger_manager).aexecute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.FAILED
    assert client.dataset_calls == []


@pytest.mark.asyncio
async def test_cancelling_aexecute_stops_polling(
    logger_manager: LoggerManager,
) -> None:
    client = ScriptedClient(statuses=[RunStatus.RUNNING])
    manager = RunLifecycleManager(
        AsyncScriptedClient(client), logger_manager=logger_manager
    )
    task = asyncio.create_task(manager.aexecute(ACTOR, {}, 60, 0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    polls = len(client.status_calls)
    await asyncio.sleep(0.05)
    assert len(client.status_calls) == polls
    assert client.dataset_calls == []


@pytest.mark.asyncio
async def test_aexecute_requires_an_async_client(
    scripted_client: ScriptedClient, logger_manager: LoggerManager
) -> None:
    manager = RunLifecycleManager(scripted_client, logger_manager=logger_manager)
    with pytest.raises(TypeError):
        await manager.aexecute(ACTOR, {})
