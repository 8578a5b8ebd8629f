"""
Minimal ASGI HTTP adapter.

This module exposes a tiny, framework-free ASGI application over the actor
routes. Routes (optionally mounted at `/v1`):

- GET  /health                              -> {"status": "ok", "version": "..."}
- GET  /api/actors[?search=&sort=]          -> own + public actors
- GET  /api/actors/{actorId}                -> actor details
- GET  /api/actors/{actorId}/schema         -> input schema document
- POST /api/actors/{actorId}/run            -> validate, run, return results
- GET  /api/actors/{actorId}/runs/{runId}   -> dataset items of a run

Every `/api/actors` route requires a credential in `X-API-Key` or
`Authorization: Bearer`. Actor ids may contain a slash (`user/name`).

Handlers are blocking; they run in a worker thread so the event loop keeps
serving other requests while a run is being polled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
import json
import re
from typing import Any
from urllib.parse import parse_qs

from pydantic import ValidationError

from actor_runner.api.v1.errors import (
    APIErrorCode,
    InputRejectedError,
    domain_error_body,
    error_body,
)
from actor_runner.api.v1.handlers import (
    APIContext,
    get_actor_schema_v1,
    get_actor_v1,
    get_run_results_v1,
    list_actors_v1,
    run_actor_v1,
)
from actor_runner.api.v1.schemas import RunRequestV1, SuccessResponseV1
from actor_runner.enums import ActorSortKey
from actor_runner.errors import ActorRunnerError
from actor_runner.session import session_from_headers
from actor_runner.utilities.version import get_runtime_version

ASGIApp = Callable[
    [
        dict[str, Any],
        Callable[[], Awaitable[dict[str, Any]]],
        Callable[[dict[str, Any]], Awaitable[None]],
    ],
    Awaitable[None],
]
Headers = list[tuple[bytes, bytes]]
Send = Callable[[dict[str, Any]], Awaitable[None]]
Receive = Callable[[], Awaitable[dict[str, Any]]]

_ACTORS_PREFIX = "/api/actors"
_RUN_RESULTS_ROUTE = re.compile(r"^/api/actors/(?P<actor>.+)/runs/(?P<run>[^/]+)$")
_SCHEMA_ROUTE = re.compile(r"^/api/actors/(?P<actor>.+)/schema$")
_RUN_ROUTE = re.compile(r"^/api/actors/(?P<actor>.+)/run$")
_ACTOR_ROUTE = re.compile(r"^/api/actors/(?P<actor>.+)$")


def _normalize_path(path: str) -> str:
    """Strip `/v1` mount prefixes and trailing slashes, keeping a leading slash."""
    if not path:
        return "/"
    while path.startswith("/v1/"):
        path = path[len("/v1") :]
    if path == "/v1":
        return "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path if path.startswith("/") else f"/{path}"


def _json_dumps(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, default=str).encode("utf-8")


def _response_messages(
    status: int,
    payload: dict[str, Any],
    headers: Headers | None = None,
) -> Iterable[dict[str, Any]]:
    body = _json_dumps(payload)
    response_headers: Headers = [(b"content-type", b"application/json")]
    if headers:
        response_headers.extend(headers)

    yield {"type": "http.response.start", "status": status, "headers": response_headers}
    yield {"type": "http.response.body", "body": body}


async def _send_json(
    send: Send,
    status: int,
    payload: dict[str, Any],
    headers: Headers | None = None,
) -> None:
    """Send a JSON response via ASGI `send`."""
    for message in _response_messages(status=status, payload=payload, headers=headers):
        await send(message)


async def _send_error(send: Send, payload: dict[str, Any]) -> None:
    await _send_json(send, status=payload["http_status"], payload=payload)


async def _method_not_allowed(send: Send, allowed: str) -> None:
    await _send_json(
        send,
        status=405,
        payload={"success": False, "error": "method not allowed"},
        headers=[(b"allow", allowed.encode("ascii"))],
    )


async def _read_body(receive: Receive) -> bytes:
    """Read the full HTTP request body from ASGI `receive`."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message.get("type") != "http.request":
            continue
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def _headers(scope: dict[str, Any]) -> dict[str, str]:
    return {
        key.decode("latin-1").lower(): value.decode("latin-1")
        for key, value in scope.get("headers", [])
    }


def _query(scope: dict[str, Any]) -> dict[str, str]:
    raw = scope.get("query_string", b"")
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    return {key: values[-1] for key, values in parse_qs(raw).items()}


async def _handle_health(method: str, send: Send) -> None:
    if method != "GET":
        await _method_not_allowed(send, "GET")
        return
    await _send_json(
        send,
        status=200,
        payload={"status": "ok", "version": get_runtime_version()},
    )


def _match_actor_route(path: str) -> tuple[str, str, dict[str, str]] | None:
    """Return `(route, allowed_method, params)` for an `/api/actors` path."""
    if path == _ACTORS_PREFIX:
        return "list", "GET", {}
    for route, method, pattern in (
        ("results", "GET", _RUN_RESULTS_ROUTE),
        ("schema", "GET", _SCHEMA_ROUTE),
        ("run", "POST", _RUN_ROUTE),
        ("actor", "GET", _ACTOR_ROUTE),
    ):
        match = pattern.match(path)
        if match:
            return route, method, match.groupdict()
    return None


def create_app(context: APIContext | None = None) -> ASGIApp:
    """
    Create the ASGI application.

    `context` carries settings, the client factory and the logger manager;
    tests inject a factory returning a scripted client.
    """
    api_context = context or APIContext()
    logger = api_context.logger_manager.get_logger("httpapi")

    async def _dispatch(
        route: str,
        params: dict[str, str],
        scope: dict[str, Any],
        receive: Receive,
    ) -> tuple[Any, int | None]:
        session = session_from_headers(_headers(scope))
        actor_id = params.get("actor", "")
        if route == "list":
            query = _query(scope)
            sort = query.get("sort")
            if sort is not None and sort not in {key.value for key in ActorSortKey}:
                raise ValueError(f"Unsupported sort key: {sort!r}")
            data = await asyncio.to_thread(
                list_actors_v1, api_context, session, query.get("search"), sort
            )
            return data["actors"], data["count"]
        if route == "actor":
            details = await asyncio.to_thread(
                get_actor_v1, api_context, session, actor_id
            )
            return details, None
        if route == "schema":
            return (
                await asyncio.to_thread(
                    get_actor_schema_v1, api_context, session, actor_id
                ),
                None,
            )
        if route == "results":
            items = await asyncio.to_thread(
                get_run_results_v1, api_context, session, actor_id, params["run"]
            )
            return items, len(items)

        body = await _read_body(receive)
        raw = json.loads(body.decode("utf-8") or "{}")
        request = RunRequestV1.model_validate(raw)
        # The lifecycle manager blocks between polls; keep it off the loop.
        result = await asyncio.to_thread(
            run_actor_v1, api_context, session, actor_id, request
        )
        return result, None

    async def app(scope: dict[str, Any], receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return

        method = str(scope.get("method", "GET")).upper()
        path = _normalize_path(str(scope.get("path", "/")))

        if path == "/health":
            await _handle_health(method=method, send=send)
            return

        matched = _match_actor_route(path) if path.startswith(_ACTORS_PREFIX) else None
        if matched is None:
            await _send_json(
                send, status=404, payload={"success": False, "error": "not found"}
            )
            return
        route, allowed, params = matched
        if method != allowed:
            await _method_not_allowed(send, allowed)
            return

        try:
            data, count = await _dispatch(route, params, scope, receive)
        except InputRejectedError as exc:
            await _send_error(
                send,
                error_body(
                    APIErrorCode.VALIDATION_ERROR,
                    "VALIDATION",
                    str(exc),
                    fields=exc.field_payloads(),
                ),
            )
            return
        except ActorRunnerError as exc:
            logger.warning(
                f"{method} {path} failed: {exc.kind.value}",
                extra={"context": {"route": route, "kind": exc.kind.value}},
            )
            await _send_error(send, domain_error_body(exc))
            return
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            await _send_error(
                send,
                error_body(
                    APIErrorCode.VALIDATION_ERROR,
                    "VALIDATION",
                    "Invalid input parameters. Input must be an object.",
                    fields=[
                        {"field": "body", "reason": "MALFORMED", "detail": str(exc)}
                    ],
                ),
            )
            return
        except ValueError as exc:
            await _send_error(
                send,
                error_body(APIErrorCode.INVALID_REQUEST, "INVALID_REQUEST", str(exc)),
            )
            return
        except Exception as exc:
            logger.exception(f"{method} {path} crashed")
            await _send_error(
                send, error_body(APIErrorCode.INTERNAL_ERROR, "INTERNAL", str(exc))
            )
            return

        payload = SuccessResponseV1(data=data, count=count).to_payload()
        await _send_json(send, status=200, payload=payload)

    return app


__all__ = ["create_app"]
