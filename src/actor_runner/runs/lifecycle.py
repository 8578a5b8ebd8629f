"""Submit a run, poll it to a terminal state under a budget, fetch its dataset.

`RunLifecycleManager.execute` blocks the calling thread between polls;
`aexecute` suspends the calling task instead. Both share `_RunTracker`, which
owns the per-call state machine, the elapsed-time check and the terminal
classification, so the two loops only differ in how they wait.

Abandoning a call (including cancelling `aexecute`) stops the local polling
only; the remote run keeps going.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import time
from typing import Any

from actor_runner.client.base import AsyncExecutionClient, ExecutionClient, RunHandle
from actor_runner.enums import ErrorKind, RunStatus
from actor_runner.errors import RunError, TransportError
from actor_runner.runs.state_machine import RunStateMachine
from actor_runner.schema.models import InputValueMap, ResultSet
from actor_runner.utilities.logger_manager import LoggerConfig, LoggerManager

DEFAULT_TIMEOUT_BUDGET = 60.0
DEFAULT_POLL_INTERVAL = 2.0


def _check_timing(timeout_budget: float, poll_interval: float) -> None:
    if poll_interval <= 0:
        raise ValueError("poll_interval must be positive")
    if timeout_budget < 0:
        raise ValueError("timeout_budget cannot be negative")


class _RunTracker:
    """Per-call bookkeeping for one submitted run."""

    def __init__(
        self,
        manager: RunLifecycleManager,
        actor_id: str,
        handle: RunHandle,
        timeout_budget: float,
    ) -> None:
        self.manager = manager
        self.actor_id = actor_id
        self.timeout_budget = timeout_budget
        self.machine = RunStateMachine()
        self.started = manager.clock()
        self.handle = handle
        if not handle.is_terminal:
            self.machine.transition_to(handle.status)
        manager.last_handle = handle

    @property
    def run_id(self) -> str:
        return self.handle.run_id

    def observe(self, handle: RunHandle) -> bool:
        """Fold one status report in; True means the dataset can be fetched."""
        manager = self.manager
        manager.logger_manager.log_metric("status_polls", tags={"actor": self.actor_id})
        if self.machine.can_transition(handle.status):
            self.machine.transition_to(handle.status)
        self.handle = handle.with_status(self.machine.state)
        manager.last_handle = self.handle
        manager.logger.debug(
            f"Run {self.run_id} status {handle.status.value}",
            extra={"context": {"actor": self.actor_id, "run_id": self.run_id}},
        )

        status = self.machine.state
        if status is RunStatus.SUCCEEDED:
            manager.logger_manager.log_metric("runs_succeeded")
            manager.logger.info(
                f"Run {self.run_id} succeeded",
                extra={"context": {"actor": self.actor_id, "run_id": self.run_id}},
            )
            return True
        if status in (RunStatus.FAILED, RunStatus.ABORTED):
            manager.logger_manager.log_metric("runs_failed")
            kind = ErrorKind.FAILED if status is RunStatus.FAILED else ErrorKind.ABORTED
            manager.logger.warning(
                f"Run {self.run_id} finished with status {status.value}",
                extra={"context": {"actor": self.actor_id, "run_id": self.run_id}},
            )
            raise RunError(
                kind,
                f"Actor run failed with status: {status.value}",
                run_id=self.run_id,
            )
        if status is RunStatus.TIMED_OUT:
            self._timed_out("Run timed out on the provider")

        elapsed = manager.clock() - self.started
        if elapsed > self.timeout_budget:
            self.machine.time_out()
            self.handle = self.handle.with_status(RunStatus.TIMED_OUT)
            manager.last_handle = self.handle
            self._timed_out(
                "Run timeout - execution took too long "
                f"(budget {self.timeout_budget:g}s)"
            )
        return False

    def _timed_out(self, detail: str) -> None:
        self.manager.logger_manager.log_metric("runs_timed_out")
        self.manager.logger.warning(
            f"Run {self.run_id} timed out",
            extra={"context": {"actor": self.actor_id, "run_id": self.run_id}},
        )
        raise RunError(ErrorKind.TIMEOUT, detail, run_id=self.run_id)

    def run_not_found(self) -> RunError:
        self.manager.logger_manager.log_metric("runs_failed")
        self.manager.logger.warning(
            f"Run {self.run_id} disappeared while polling",
            extra={"context": {"actor": self.actor_id, "run_id": self.run_id}},
        )
        return RunError(ErrorKind.RUN_NOT_FOUND, "Run not found", run_id=self.run_id)


class RunLifecycleManager:
    """Drives one run per `execute` call against an execution client.

    Args:
        client: A blocking `ExecutionClient` for `execute`, or an
            `AsyncExecutionClient` for `aexecute`.
        logger_manager: Shared logging and counters; a default one is built
            when omitted.
        clock: Monotonic seconds source used for the timeout budget.
        sleep: Blocking wait used between polls by `execute`.
        async_sleep: Cooperative wait used between polls by `aexecute`.
    """

    def __init__(
        self,
        client: ExecutionClient | AsyncExecutionClient,
        logger_manager: LoggerManager | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
        async_sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.logger_manager = logger_manager or LoggerManager(LoggerConfig())
        self.logger = self.logger_manager.get_logger("runs")
        self.clock = clock
        self.sleep = sleep
        self.async_sleep = async_sleep
        self.last_handle: RunHandle | None = None

    def _submitted(
        self, actor_id: str, handle: RunHandle, timeout_budget: float
    ) -> _RunTracker:
        self.logger_manager.log_metric("runs_submitted", tags={"actor": actor_id})
        self.logger.info(
            f"Submitted run {handle.run_id} for actor {actor_id}",
            extra={
                "context": {
                    "actor": actor_id,
                    "run_id": handle.run_id,
                    "status": handle.status.value,
                    "run_url": handle.run_url,
                }
            },
        )
        return _RunTracker(self, actor_id, handle, timeout_budget)

    def execute(
        self,
        actor_id: str,
        input_values: InputValueMap,
        timeout_budget: float = DEFAULT_TIMEOUT_BUDGET,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> ResultSet:
        """Run an actor to completion and return its dataset items.

        Raises:
            TransportError: Submission failed, or a poll or dataset fetch
                failed for a reason other than the run being gone.
            RunError: The run failed, was aborted, vanished or exceeded
                `timeout_budget` seconds.
        """
        _check_timing(timeout_budget, poll_interval)
        if not isinstance(self.client, ExecutionClient):
            raise TypeError("execute requires a blocking ExecutionClient")
        client = self.client
        self.last_handle = None

        handle = client.submit_run(actor_id, input_values)
        tracker = self._submitted(actor_id, handle, timeout_budget)
        while True:
            try:
                polled = client.get_run_status(actor_id, tracker.run_id)
            except TransportError as exc:
                if exc.kind is not ErrorKind.NOT_FOUND:
                    raise
                raise tracker.run_not_found() from exc
            if tracker.observe(polled):
                return client.get_dataset_items(actor_id, tracker.run_id)
            self.sleep(poll_interval)

    async def aexecute(
        self,
        actor_id: str,
        input_values: InputValueMap,
        timeout_budget: float = DEFAULT_TIMEOUT_BUDGET,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> ResultSet:
        """Cooperative counterpart of `execute` over an async client."""
        _check_timing(timeout_budget, poll_interval)
        if not isinstance(self.client, AsyncExecutionClient):
            raise TypeError("aexecute requires an AsyncExecutionClient")
        client = self.client
        self.last_handle = None

        handle = await client.submit_run(actor_id, input_values)
        tracker = self._submitted(actor_id, handle, timeout_budget)
        while True:
            try:
                polled = await client.get_run_status(actor_id, tracker.run_id)
            except TransportError as exc:
                if exc.kind is not ErrorKind.NOT_FOUND:
                    raise
                raise tracker.run_not_found() from exc
            if tracker.observe(polled):
                return await client.get_dataset_items(actor_id, tracker.run_id)
            await self.async_sleep(poll_interval)


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_TIMEOUT_BUDGET",
    "RunLifecycleManager",
]
