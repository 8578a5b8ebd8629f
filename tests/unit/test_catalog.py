from __future__ import annotations

from datetime import datetime, timezone

import pytest

from actor_runner.catalog import (
    browse,
    fetch_catalog,
    fetch_input_schema,
    filter_actors,
    sort_actors,
)
from actor_runner.client.base import ActorSummary
from actor_runner.client.scripted import ScriptedClient
from actor_runner.enums import ActorSource, ActorSortKey, ErrorKind, PropertyType
from actor_runner.errors import SchemaError, TransportError

OWN = [
    {
        "id": "u1",
        "name": "zeta-scraper",
        "username": "me",
        "description": "Scrapes shops",
        "createdAt": "2024-03-01T00:00:00Z",
        "modifiedAt": "2024-03-05T00:00:00Z",
        "inputSchema": {
            "properties": {"query": {"type": "string"}},
            "required": ["query"],
        },
    },
    {
        "id": "u2",
        "name": "Alpha-tool",
        "username": "me",
        "createdAt": "2024-05-01T00:00:00Z",
    },
]
PUBLIC = [
    {
        "id": "p1",
        "name": "website-content-crawler",
        "username": "apify",
        "description": "Crawl websites and extract text",
        "modifiedAt": "2024-06-01T00:00:00+00:00",
    },
    {"id": "p2", "name": "mystery", "username": "someone"},
]


@pytest.fixture
def catalog_client() -> ScriptedClient:
    return ScriptedClient(actors=OWN, public_actors=PUBLIC)


def _ids(actors: list[ActorSummary]) -> list[str]:
    return [actor.id for actor in actors]


def test_fetch_catalog_lists_own_actors_first(catalog_client: ScriptedClient) -> None:
    listing = fetch_catalog(catalog_client, public_limit=5)
    assert _ids(list(listing.actors)) == ["u1", "u2", "p1", "p2"]
    assert listing.user_count == 2
    assert listing.public_count == 2
    assert listing.actors[0].source is ActorSource.USER
    assert listing.actors[2].source is ActorSource.PUBLIC
    payload = listing.to_payload()
    assert payload["count"] == 4
    assert payload["userActorsCount"] == 2
    assert payload["publicActorsCount"] == 2
    assert payload["actors"][0]["source"] == "user"


def test_public_limit_is_applied(catalog_client: ScriptedClient) -> None:
    listing = fetch_catalog(catalog_client, public_limit=1)
    assert listing.public_count == 1


def test_search_matches_name_or_description_ignoring_case(
    catalog_client: ScriptedClient,
) -> None:
    actors = list(fetch_catalog(catalog_client).actors)
    assert _ids(filter_actors(actors, "SHOPS")) == ["u1"]
    assert _ids(filter_actors(actors, "crawl")) == ["p1"]
    assert _ids(filter_actors(actors, "  ")) == _ids(actors)
    assert filter_actors(actors, "nothing-like-this") == []


def test_sort_orders(catalog_client: ScriptedClient) -> None:
    actors = list(fetch_catalog(catalog_client).actors)
    assert _ids(sort_actors(actors, ActorSortKey.NAME)) == ["u2", "p2", "p1", "u1"]
    assert _ids(sort_actors(actors, "created")) == ["u2", "u1", "p1", "p2"]
    assert _ids(sort_actors(actors, ActorSortKey.MODIFIED)) == ["p1", "u1", "u2", "p2"]


def test_sort_handles_naive_timestamps() -> None:
    actors = [
        ActorSummary(id="a", name="a", created_at=datetime(2024, 1, 1)),
        ActorSummary(
            id="b", name="b", created_at=datetime(2024, 2, 1, tzinfo=timezone.utc)
        ),
    ]
    assert _ids(sort_actors(actors, "created")) == ["b", "a"]


def test_unknown_sort_key_is_rejected() -> None:
    with pytest.raises(ValueError):
        sort_actors([], "popularity")


def test_browse_filters_then_sorts(catalog_client: ScriptedClient) -> None:
    actors = list(fetch_catalog(catalog_client).actors)
    assert _ids(browse(actors, search="-", sort="name")) == ["u2", "p1", "u1"]


def test_published_schema_wins(catalog_client: ScriptedClient) -> None:
    schema = fetch_input_schema(catalog_client, "me/zeta-scraper")
    assert schema.names() == ["query"]
    assert schema.required == ("query",)


def test_known_actor_without_schema_uses_builtin(
    catalog_client: ScriptedClient,
) -> None:
    schema = fetch_input_schema(catalog_client, "apify~website-content-crawler")
    assert schema.names() == [
        "startUrls",
        "maxCrawlPages",
        "maxRequestRetries",
        "maxConcurrency",
    ]


def test_unknown_actor_without_schema_gets_generic_object(
    catalog_client: ScriptedClient,
) -> None:
    schema = fetch_input_schema(catalog_client, "p2")
    assert schema.names() == ["input"]
    assert schema.descriptor("input").property_type is PropertyType.OBJECT


def test_missing_actor_is_not_found(catalog_client: ScriptedClient) -> None:
    with pytest.raises(TransportError) as excinfo:
        fetch_input_schema(catalog_client, "nobody/nothing")
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


def test_malformed_published_schema_raises_schema_error() -> None:
    client = ScriptedClient(
        actors=[
            {
                "id": "bad",
                "name": "bad",
                "inputSchema": {"properties": {"x": {"type": "date"}}},
            }
        ]
    )
    with pytest.raises(SchemaError):
        fetch_input_schema(client, "bad")
