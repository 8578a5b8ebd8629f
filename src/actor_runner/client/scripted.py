"""In-memory client that replays a scripted run, for tests and dry runs."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import copy
from typing import Any

from actor_runner.client.base import (
    ActorDetails,
    ActorSummary,
    AsyncExecutionClient,
    ProviderClient,
    RunHandle,
)
from actor_runner.enums import ActorSource, ErrorKind, RunStatus
from actor_runner.errors import TransportError
from actor_runner.schema.models import InputValueMap, ResultSet

ScriptStep = RunStatus | str | Exception


class ScriptedClient(ProviderClient):
    """Replays `statuses` one per poll, then repeats the last entry.

    A step may be an exception instance, which is raised at that poll. Every
    call is recorded so tests can assert on the exact traffic.
    """

    def __init__(
        self,
        statuses: Sequence[ScriptStep] = (RunStatus.SUCCEEDED,),
        dataset: Iterable[Any] = (),
        *,
        run_id: str = "scripted-run",
        initial_status: RunStatus = RunStatus.READY,
        submit_error: Exception | None = None,
        dataset_error: Exception | None = None,
        actors: Iterable[Mapping[str, Any]] = (),
        public_actors: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        if not statuses:
            raise ValueError("statuses must contain at least one step")
        self.statuses = list(statuses)
        self.dataset = list(dataset)
        self.run_id = run_id
        self.initial_status = initial_status
        self.submit_error = submit_error
        self.dataset_error = dataset_error
        self.actors = [dict(actor) for actor in actors]
        self.public_actors = [dict(actor) for actor in public_actors]
        self.submit_calls: list[tuple[str, InputValueMap]] = []
        self.status_calls: list[tuple[str, str]] = []
        self.dataset_calls: list[tuple[str, str]] = []
        self.catalog_calls: list[tuple[str, Any]] = []

    def _handle(self, actor_id: str, status: RunStatus | str) -> RunHandle:
        return RunHandle.from_provider(
            actor_id, {"id": self.run_id, "actId": actor_id, "status": status}
        )

    def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        self.submit_calls.append((actor_id, copy.deepcopy(input_values)))
        if self.submit_error is not None:
            raise self.submit_error
        return self._handle(actor_id, self.initial_status)

    def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        self.status_calls.append((actor_id, run_id))
        if run_id != self.run_id:
            raise TransportError(ErrorKind.NOT_FOUND, "Run not found", status_code=404)
        step = self.statuses[min(len(self.status_calls), len(self.statuses)) - 1]
        if isinstance(step, Exception):
            raise step
        return self._handle(actor_id, step)

    def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        self.dataset_calls.append((actor_id, run_id))
        if self.dataset_error is not None:
            raise self.dataset_error
        return copy.deepcopy(self.dataset)

    def list_actors(
        self, public: bool = False, limit: int | None = None
    ) -> list[ActorSummary]:
        self.catalog_calls.append(("list", public))
        source = ActorSource.PUBLIC if public else ActorSource.USER
        entries = self.public_actors if public else self.actors
        if limit is not None:
            entries = entries[:limit]
        return [
            ActorSummary.model_validate({**entry, "source": source})
            for entry in entries
        ]

    def get_actor(self, actor_id: str) -> ActorDetails:
        self.catalog_calls.append(("get", actor_id))
        full_name = actor_id.replace("~", "/")
        for entry in [*self.actors, *self.public_actors]:
            if actor_id == entry.get("id") or full_name == _full_name(entry):
                return ActorDetails.model_validate(entry)
        raise TransportError(ErrorKind.NOT_FOUND, "Resource not found", status_code=404)


class AsyncScriptedClient(AsyncExecutionClient):
    """Coroutine facade over a `ScriptedClient`, sharing its script and records."""

    def __init__(self, scripted: ScriptedClient) -> None:
        self.scripted = scripted

    async def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        return self.scripted.submit_run(actor_id, input_values)

    async def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        return self.scripted.get_run_status(actor_id, run_id)

    async def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        return self.scripted.get_dataset_items(actor_id, run_id)


def _full_name(entry: Mapping[str, Any]) -> str | None:
    if entry.get("username") and entry.get("name"):
        return f"{entry['username']}/{entry['name']}"
    return None


__all__ = ["AsyncScriptedClient", "ScriptStep", "ScriptedClient"]
