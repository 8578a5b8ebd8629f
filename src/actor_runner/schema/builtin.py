"""Fallback input schemas for actors that publish none."""

from __future__ import annotations

from collections.abc import Mapping
import copy
from typing import Any

WEBSITE_CONTENT_CRAWLER = "website-content-crawler"

_CRAWLER_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "startUrls": {
            "type": "array",
            "title": "Start URLs",
            "description": "URLs to start crawling from",
            "items": {
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "title": "URL",
                        "description": "The URL to crawl",
                    }
                },
                "required": ["url"],
            },
        },
        "maxCrawlPages": {
            "type": "integer",
            "title": "Max Crawl Pages",
            "description": "Maximum number of pages to crawl",
            "default": 1,
        },
        "maxRequestRetries": {
            "type": "integer",
            "title": "Max Request Retries",
            "description": "Maximum number of retries for failed requests",
            "default": 3,
        },
        "maxConcurrency": {
            "type": "integer",
            "title": "Max Concurrency",
            "description": "Maximum number of concurrent requests",
            "default": 10,
        },
    },
    "required": ["startUrls"],
}

_GENERIC_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "input": {
            "type": "object",
            "title": "Input Parameters",
            "description": "Actor-specific input parameters",
        }
    },
}

BUILTIN_SCHEMAS: dict[str, dict[str, Any]] = {
    WEBSITE_CONTENT_CRAWLER: _CRAWLER_SCHEMA,
}


def generic_schema() -> dict[str, Any]:
    return copy.deepcopy(_GENERIC_SCHEMA)


def resolve_input_schema(actor: Mapping[str, Any]) -> dict[str, Any]:
    """Return the schema document to render for an actor.

    The actor's own `inputSchema` wins. Otherwise a known built-in schema is
    looked up by actor name, and the generic single-object schema is used as a
    last resort.
    """
    published = actor.get("inputSchema") or actor.get("input_schema")
    if isinstance(published, Mapping) and isinstance(
        published.get("properties"), Mapping
    ):
        return copy.deepcopy(dict(published))
    builtin = BUILTIN_SCHEMAS.get(str(actor.get("name") or ""))
    if builtin is not None:
        return copy.deepcopy(builtin)
    return generic_schema()
