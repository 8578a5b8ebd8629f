"""API v1 request handlers.

Handlers are synchronous and framework-free: each takes an explicit
`SessionContext` and returns plain JSON-ready data, raising the domain errors
(`ActorRunnerError`) or `InputRejectedError` for the adapter to map.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from actor_runner.api.v1.errors import InputRejectedError
from actor_runner.api.v1.schemas import RunRequestV1, RunResultV1
from actor_runner.catalog import browse, fetch_catalog, fetch_input_schema
from actor_runner.client.base import ProviderClient
from actor_runner.client.http import ApifyClient
from actor_runner.config.env import RunnerSettings
from actor_runner.enums import ActorSortKey
from actor_runner.forms.compiler import prune_empty, validate
from actor_runner.runs.lifecycle import RunLifecycleManager
from actor_runner.schema.builtin import resolve_input_schema
from actor_runner.session import SessionContext
from actor_runner.utilities.logger_manager import LoggerConfig, LoggerManager

ClientFactory = Callable[[SessionContext, RunnerSettings], ProviderClient]


def default_client_factory(
    session: SessionContext, settings: RunnerSettings
) -> ProviderClient:
    return ApifyClient(
        session, base_url=settings.base_url, timeout=settings.http_timeout
    )


@dataclass
class APIContext:
    """Dependencies shared by every request."""

    settings: RunnerSettings = field(default_factory=RunnerSettings)
    client_factory: ClientFactory = default_client_factory
    logger_manager: LoggerManager = field(
        default_factory=lambda: LoggerManager(LoggerConfig())
    )

    def client_for(self, session: SessionContext) -> ProviderClient:
        session.require_token()
        return self.client_factory(session, self.settings)


def list_actors_v1(
    context: APIContext,
    session: SessionContext,
    search: str | None = None,
    sort: str | None = None,
) -> dict[str, Any]:
    """Own actors followed by public ones, optionally searched and sorted."""
    listing = fetch_catalog(
        context.client_for(session), public_limit=context.settings.public_actor_limit
    )
    actors = list(listing.actors)
    if search or sort:
        actors = browse(actors, search=search, sort=ActorSortKey(sort or "name"))
    payload = listing.to_payload()
    payload["actors"] = [actor.to_payload() for actor in actors]
    payload["count"] = len(actors)
    return payload


def get_actor_v1(
    context: APIContext, session: SessionContext, actor_id: str
) -> dict[str, Any]:
    details = context.client_for(session).get_actor(actor_id)
    return details.to_payload()


def get_actor_schema_v1(
    context: APIContext, session: SessionContext, actor_id: str
) -> dict[str, Any]:
    """Schema document the actor's input form is rendered from."""
    details = context.client_for(session).get_actor(actor_id)
    return resolve_input_schema(details.model_dump(by_alias=True))


def run_actor_v1(
    context: APIContext,
    session: SessionContext,
    actor_id: str,
    request: RunRequestV1,
) -> dict[str, Any]:
    """Validate the input against the actor schema, run it and collect results."""
    client = context.client_for(session)
    schema = fetch_input_schema(client, actor_id)
    errors = validate(schema, request.input)
    if errors:
        raise InputRejectedError(errors)
    input_values = prune_empty(schema, request.input)

    settings = context.settings
    manager = RunLifecycleManager(client, logger_manager=context.logger_manager)
    results = manager.execute(
        actor_id,
        input_values,
        timeout_budget=(
            request.timeout if request.timeout is not None else settings.timeout_budget
        ),
        poll_interval=request.poll_interval or settings.poll_interval,
    )
    handle = manager.last_handle
    if handle is None:
        raise RuntimeError("Run finished without a run handle")
    return RunResultV1(
        run_id=handle.run_id,
        status=handle.status.value,
        run_url=handle.run_url,
        results=results,
        count=len(results),
    ).model_dump(by_alias=True, mode="json")


def get_run_results_v1(
    context: APIContext, session: SessionContext, actor_id: str, run_id: str
) -> list[Any]:
    return context.client_for(session).get_dataset_items(actor_id, run_id)


__all__ = [
    "APIContext",
    "ClientFactory",
    "default_client_factory",
    "get_actor_schema_v1",
    "get_actor_v1",
    "get_run_results_v1",
    "list_actors_v1",
    "run_actor_v1",
]
