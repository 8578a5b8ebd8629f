from __future__ import annotations

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
        client, logger_manager=logger_manager, clock=clock, sleep=clock.sleep
    )


def test_ready_then_succeeded_fetches_dataset_once(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        statuses=[RunStatus.READY, RunStatus.SUCCEEDED],
        dataset=[{"url": "https://a.example", "text": "A"}],
        run_id="run-1",
    )
    results = _manager(client, fake_clock, logger_manager).execute(
        ACTOR, {"startUrls": [{"url": "https://a.example"}]}, 60, 2
    )
    assert results == [{"url": "https://a.example", "text": "A"}]
    assert client.submit_calls == [
        (ACTOR, {"startUrls": [{"url": "https://a.example"}]})
    ]
    assert len(client.status_calls) == 2
    assert client.dataset_calls == [(ACTOR, "run-1")]
    assert fake_clock.sleeps == [2]


def test_last_handle_reports_the_finished_run(
    scripted_client: ScriptedClient,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    manager = _manager(scripted_client, fake_clock, logger_manager)
    manager.execute(ACTOR, {}, 60, 1)
    assert manager.last_handle is not None
    assert manager.last_handle.run_id == "run-1"
    assert manager.last_handle.status is RunStatus.SUCCEEDED
    assert manager.last_handle.run_url.endswith("/runs/run-1")


@pytest.mark.parametrize(
    ("terminal", "kind"),
    [(RunStatus.FAILED, ErrorKind.FAILED), (RunStatus.ABORTED, ErrorKind.ABORTED)],
)
def test_failed_runs_never_fetch_the_dataset(
    terminal: RunStatus,
    kind: ErrorKind,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    client = ScriptedClient(statuses=[RunStatus.RUNNING, terminal], dataset=[1])
    with pytest.raises(RunError) as excinfo:
        _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is kind
    assert excinfo.value.detail == f"Actor run failed with status: {terminal.value}"
    assert excinfo.value.run_id == "scripted-run"
    assert len(client.status_calls) == 2
    assert client.dataset_calls == []
    assert logger_manager.metric_value("runs_failed") == 1


@pytest.mark.parametrize(("budget", "expected_polls"), [(5, 4), (6, 5), (0, 2)])
def test_timeout_fires_only_once_budget_is_exceeded(
    budget: float,
    expected_polls: int,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    client = ScriptedClient(statuses=[RunStatus.RUNNING])
    manager = _manager(client, fake_clock, logger_manager)
    with pytest.raises(RunError) as excinfo:
        manager.execute(ACTOR, {}, timeout_budget=budget, poll_interval=2)
    assert excinfo.value.kind is ErrorKind.TIMEOUT
    assert "execution took too long" in excinfo.value.detail
    assert fake_clock.now > budget
    assert len(client.status_calls) == expected_polls
    assert client.dataset_calls == []
    assert manager.last_handle is not None
    assert manager.last_handle.status is RunStatus.TIMED_OUT
    assert logger_manager.metric_value("runs_timed_out") == 1


def test_success_on_the_boundary_poll_is_not_a_timeout(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        statuses=[RunStatus.RUNNING, RunStatus.RUNNING, RunStatus.SUCCEEDED],
        dataset=["done"],
    )
    results = _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 4, 2)
    assert results == ["done"]
    assert fake_clock.now == 4


def test_provider_side_timeout_is_reported_as_timeout(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(statuses=[RunStatus.TIMED_OUT])
    with pytest.raises(RunError) as excinfo:
        _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.TIMEOUT
    assert client.dataset_calls == []


def test_late_ready_report_does_not_rewind_the_run(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        statuses=[RunStatus.RUNNING, RunStatus.READY, RunStatus.SUCCEEDED],
        dataset=["x"],
    )
    assert _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1) == [
        "x"
    ]
    assert len(client.status_calls) == 3


def test_vanished_run_raises_run_not_found(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    gone = TransportError(ErrorKind.NOT_FOUND, "Resource not found", status_code=404)
    client = ScriptedClient(statuses=[RunStatus.RUNNING, gone])
    with pytest.raises(RunError) as excinfo:
        _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.RUN_NOT_FOUND
    assert excinfo.value.detail == "Run not found"
    assert excinfo.value.__cause__ is gone


def test_other_poll_failures_propagate_unchanged(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    limited = TransportError(ErrorKind.RATE_LIMITED, "slow down", status_code=429)
    client = ScriptedClient(statuses=[limited])
    with pytest.raises(TransportError) as excinfo:
        _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert excinfo.value is limited


def test_submit_failure_never_polls(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        submit_error=TransportError(ErrorKind.UNAUTHORIZED, "bad key", 401)
    )
    manager = _manager(client, fake_clock, logger_manager)
    with pytest.raises(TransportError) as excinfo:
        manager.execute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.UNAUTHORIZED
    assert client.status_calls == []
    assert manager.last_handle is None
    assert logger_manager.metric_value("runs_submitted") == 0


def test_dataset_failure_propagates(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(
        dataset_error=TransportError(ErrorKind.UPSTREAM, "boom", status_code=500)
    )
    with pytest.raises(TransportError) as excinfo:
        _manager(client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert excinfo.value.kind is ErrorKind.UPSTREAM


@pytest.mark.parametrize(("budget", "interval"), [(60, 0), (60, -1), (-1, 1)])
def test_rejects_invalid_timing(
    budget: float,
    interval: float,
    scripted_client: ScriptedClient,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    with pytest.raises(ValueError):
        _manager(scripted_client, fake_clock, logger_manager).execute(
            ACTOR, {}, budget, interval
        )
    assert scripted_client.submit_calls == []


def test_execute_requires_a_blocking_client(
    scripted_client: ScriptedClient, logger_manager: LoggerManager
) -> None:
    manager = RunLifecycleManager(
        AsyncScriptedClient(scripted_client), logger_manager=logger_manager
    )
    with pytest.raises(TypeError):
        manager.execute(ACTOR, {})


def test_counters_track_each_poll(
    scripted_client: ScriptedClient,
    fake_clock: FakeClock,
    logger_manager: LoggerManager,
) -> None:
    _manager(scripted_client, fake_clock, logger_manager).execute(ACTOR, {}, 60, 1)
    assert logger_manager.metric_value("runs_submitted") == 1
    assert logger_manager.metric_value("status_polls") == 2
    assert logger_manager.metric_value("runs_succeeded") == 1


def test_each_execute_is_independent(
    fake_clock: FakeClock, logger_manager: LoggerManager
) -> None:
    client = ScriptedClient(statuses=[RunStatus.SUCCEEDED], dataset=[1])
    manager = _manager(client, fake_clock, logger_manager)
    assert manager.execute(ACTOR, {}, 60, 1) == [1]
    assert manager.execute(ACTOR, {}, 60, 1) == [1]
    assert len(client.submit_calls) == 2
