"""Transport contract between the lifecycle manager and the provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import Field

from actor_runner.config.defaults import CONSOLE_BASE_URL
from actor_runner.enums import ActorSource, RunStatus
from actor_runner.schema.base import FrozenModel
from actor_runner.schema.models import InputValueMap, ResultSet


class RunHandle(FrozenModel):
    """Provider view of one run; replaced, never edited, as polling advances."""

    run_id: str = Field(..., alias="id", min_length=1)
    actor_id: str = Field("", alias="actId")
    status: RunStatus
    started_at: datetime | None = Field(None, alias="startedAt")
    finished_at: datetime | None = Field(None, alias="finishedAt")
    dataset_id: str | None = Field(None, alias="defaultDatasetId")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def run_url(self) -> str:
        return f"{CONSOLE_BASE_URL}/actors/{self.actor_id}/runs/{self.run_id}"

    @classmethod
    def from_provider(cls, actor_id: str, data: dict[str, Any]) -> RunHandle:
        """Build a handle from the provider's run object."""
        payload = dict(data)
        payload["status"] = RunStatus.from_provider(payload.get("status"))
        if not payload.get("actId"):
            payload["actId"] = actor_id
        return cls.model_validate(payload)

    def with_status(self, status: RunStatus) -> RunHandle:
        return self.model_copy(update={"status": status})


class ActorSummary(FrozenModel):
    """Catalog entry for one actor."""

    id: str
    name: str
    username: str | None = None
    description: str | None = None
    is_public: bool = Field(False, alias="isPublic")
    is_deprecated: bool = Field(False, alias="isDeprecated")
    created_at: datetime | None = Field(None, alias="createdAt")
    modified_at: datetime | None = Field(None, alias="modifiedAt")
    stats: dict[str, Any] | None = None
    source: ActorSource = ActorSource.USER

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ActorDetails(ActorSummary):
    input_schema: dict[str, Any] | None = Field(None, alias="inputSchema")


class ExecutionClient(ABC):
    """Blocking provider operations the lifecycle manager depends on."""

    @abstractmethod
    def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        """Start a run; the returned handle is READY or RUNNING."""

    @abstractmethod
    def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        """Fetch the current state of a run."""

    @abstractmethod
    def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        """Fetch the run's dataset records in provider order."""


class AsyncExecutionClient(ABC):
    """Cooperative counterpart of `ExecutionClient`."""

    @abstractmethod
    async def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        """Start a run; the returned handle is READY or RUNNING."""

    @abstractmethod
    async def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        """Fetch the current state of a run."""

    @abstractmethod
    async def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        """Fetch the run's dataset records in provider order."""


class ActorCatalog(ABC):
    """Read-only actor browsing operations."""

    @abstractmethod
    def list_actors(
        self, public: bool = False, limit: int | None = None
    ) -> list[ActorSummary]:
        """List the caller's own actors, or public ones when `public` is set."""

    @abstractmethod
    def get_actor(self, actor_id: str) -> ActorDetails:
        """Fetch one actor including its published input schema."""


class ProviderClient(ExecutionClient, ActorCatalog):
    """A blocking client that can both browse actors and drive runs."""


__all__ = [
    "ActorCatalog",
    "ActorDetails",
    "ActorSummary",
    "AsyncExecutionClient",
    "ExecutionClient",
    "ProviderClient",
    "RunHandle",
]
