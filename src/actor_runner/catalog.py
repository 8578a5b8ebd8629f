"""Actor catalog browsing: merge own and public actors, search and sort."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import Field

from actor_runner.client.base import ActorCatalog, ActorSummary
from actor_runner.config.defaults import RUNNER_DEFAULTS
from actor_runner.enums import ActorSortKey
from actor_runner.schema.base import FrozenModel
from actor_runner.schema.builtin import resolve_input_schema
from actor_runner.schema.models import SchemaModel

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)
_PUBLIC_LIMIT = int(RUNNER_DEFAULTS["public_actor_limit"])  # type: ignore[call-overload]


class CatalogListing(FrozenModel):
    """Own actors first, then the public sample, with per-source counts."""

    actors: tuple[ActorSummary, ...] = Field(default_factory=tuple)
    user_count: int = 0
    public_count: int = 0

    @property
    def count(self) -> int:
        return len(self.actors)

    def to_payload(self) -> dict[str, Any]:
        return {
            "actors": [actor.to_payload() for actor in self.actors],
            "count": self.count,
            "userActorsCount": self.user_count,
            "publicActorsCount": self.public_count,
        }


def fetch_catalog(
    catalog: ActorCatalog,
    public_limit: int = _PUBLIC_LIMIT,
) -> CatalogListing:
    """List the caller's actors followed by a sample of public ones."""
    own = catalog.list_actors()
    public = catalog.list_actors(public=True, limit=public_limit)
    return CatalogListing(
        actors=(*own, *public), user_count=len(own), public_count=len(public)
    )


def filter_actors(
    actors: Iterable[ActorSummary], search: str | None
) -> list[ActorSummary]:
    """Keep actors whose name or description contains `search`, ignoring case."""
    needle = (search or "").strip().casefold()
    if not needle:
        return list(actors)
    return [
        actor
        for actor in actors
        if needle in actor.name.casefold()
        or needle in (actor.description or "").casefold()
    ]


def _timestamp(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def sort_actors(
    actors: Iterable[ActorSummary], key: ActorSortKey | str = ActorSortKey.NAME
) -> list[ActorSummary]:
    """Order by name ascending, or by created/modified time newest first."""
    sort_key = ActorSortKey(key)
    if sort_key is ActorSortKey.NAME:
        return sorted(actors, key=lambda actor: actor.name.casefold())
    if sort_key is ActorSortKey.CREATED:
        return sorted(
            actors, key=lambda actor: _timestamp(actor.created_at), reverse=True
        )
    return sorted(
        actors, key=lambda actor: _timestamp(actor.modified_at), reverse=True
    )


def browse(
    actors: Iterable[ActorSummary],
    search: str | None = None,
    sort: ActorSortKey | str = ActorSortKey.NAME,
) -> list[ActorSummary]:
    return sort_actors(filter_actors(actors, search), sort)


def fetch_input_schema(catalog: ActorCatalog, actor_id: str) -> SchemaModel:
    """Fetch an actor and model the schema its input form should render."""
    details = catalog.get_actor(actor_id)
    document = resolve_input_schema(details.model_dump(by_alias=True))
    return SchemaModel.from_document(document)


__all__ = [
    "CatalogListing",
    "browse",
    "fetch_catalog",
    "fetch_input_schema",
    "filter_actors",
    "sort_actors",
]
