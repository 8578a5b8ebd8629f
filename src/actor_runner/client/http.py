"""Blocking HTTP client for the provider's actor API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar
from urllib import parse as urllib_parse

from pydantic import ValidationError
import requests

from actor_runner.client.base import (
    ActorDetails,
    ActorSummary,
    ProviderClient,
    RunHandle,
)
from actor_runner.config.defaults import DEFAULT_BASE_URL
from actor_runner.enums import ActorSource, ErrorKind
from actor_runner.errors import TransportError
from actor_runner.schema.models import InputValueMap, ResultSet
from actor_runner.session import SessionContext

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=ActorSummary)

_CLASSIFIED_STATUSES = frozenset({401, 403, 404, 429})


def actor_path(actor_id: str) -> str:
    """Encode an actor id for a URL path; `user/name` becomes `user~name`."""
    return urllib_parse.quote(actor_id.replace("/", "~"), safe="~")


def unwrap(body: Any) -> Any:
    """Strip the provider's `{"data": ...}` envelope when present."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def provider_message(body: Any) -> str | None:
    """Pull a human message out of a provider error body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str):
        return error
    message = body.get("message")
    return message if isinstance(message, str) else None


def classify_response(status_code: int, load_body: Callable[[], Any]) -> Any:
    """Return the decoded body of a 2xx response or raise its TransportError.

    `load_body` decodes the response text and raises ValueError on non-JSON.
    Provider messages are only surfaced for statuses without a fixed detail.
    """
    if not 200 <= status_code < 300:
        message = None
        if status_code not in _CLASSIFIED_STATUSES:
            try:
                message = provider_message(load_body())
            except ValueError:
                message = None
        raise TransportError.from_status(status_code, message)
    try:
        return load_body()
    except ValueError as exc:
        raise TransportError(
            ErrorKind.UPSTREAM,
            "Provider returned a non-JSON response",
            status_code=status_code,
        ) from exc


def run_handle_from_body(actor_id: str, body: Any) -> RunHandle:
    """Parse a run response body, classifying bad payloads as upstream faults."""
    data = unwrap(body)
    if not isinstance(data, dict):
        raise TransportError(ErrorKind.UPSTREAM, "Unexpected provider run payload")
    try:
        return RunHandle.from_provider(actor_id, data)
    except ValidationError as exc:
        raise TransportError(
            ErrorKind.UPSTREAM, f"Malformed provider run payload: {exc}"
        ) from exc


def dataset_from_body(body: Any) -> ResultSet:
    """Return dataset records untouched and in provider order."""
    items = unwrap(body)
    if isinstance(items, dict) and isinstance(items.get("items"), list):
        items = items["items"]
    if not isinstance(items, list):
        raise TransportError(ErrorKind.UPSTREAM, "Dataset items must be a list")
    return list(items)


def run_path(actor_id: str, run_id: str) -> str:
    return f"/acts/{actor_path(actor_id)}/runs/{urllib_parse.quote(run_id, safe='')}"


def validate_base_url(base_url: str) -> str:
    parsed = urllib_parse.urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"base_url must be an http(s) URL with a host: {base_url!r}")
    return base_url.rstrip("/")


class ApifyClient(ProviderClient):
    """Talks to the provider REST API with `requests`.

    `http` may be any object exposing `request(method, url, **kwargs)`, such as
    a `requests.Session`; it defaults to the `requests` module itself.
    """

    def __init__(
        self,
        session: SessionContext,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http: Any | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.session = session
        self.base_url = validate_base_url(base_url)
        self.timeout = timeout
        self._http = http

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", **self.session.auth_headers()}

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        http = self._http or requests
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise TransportError(
                ErrorKind.UPSTREAM,
                "Request timeout - the operation took too long",
                timed_out=True,
            ) from exc
        except requests.RequestException as exc:
            raise TransportError(
                ErrorKind.UPSTREAM, f"Service unavailable - network error ({exc})"
            ) from exc

        return classify_response(getattr(response, "status_code", 200), response.json)

    @staticmethod
    def _model(model: type[ModelT], data: Any, **extra: Any) -> ModelT:
        if not isinstance(data, dict):
            raise TransportError(
                ErrorKind.UPSTREAM, f"Unexpected provider payload for {model.__name__}"
            )
        try:
            return model.model_validate({**data, **extra})
        except ValidationError as exc:
            raise TransportError(
                ErrorKind.UPSTREAM, f"Malformed provider payload: {exc}"
            ) from exc

    def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        body = self._request(
            "POST", f"/acts/{actor_path(actor_id)}/runs", json=input_values
        )
        return run_handle_from_body(actor_id, body)

    def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        body = self._request("GET", run_path(actor_id, run_id))
        return run_handle_from_body(actor_id, body)

    def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        body = self._request(
            "GET",
            f"{run_path(actor_id, run_id)}/dataset/items",
            params={"format": "json"},
        )
        return dataset_from_body(body)

    def list_actors(
        self, public: bool = False, limit: int | None = None
    ) -> list[ActorSummary]:
        params: dict[str, Any] = {}
        if public:
            params["isPublic"] = "true"
        if limit is not None:
            params["limit"] = limit
        data = unwrap(self._request("GET", "/acts", params=params or None))
        items = data.get("items") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise TransportError(ErrorKind.UPSTREAM, "Actor listing must be a list")
        source = ActorSource.PUBLIC if public else ActorSource.USER
        return [self._model(ActorSummary, item, source=source) for item in items]

    def get_actor(self, actor_id: str) -> ActorDetails:
        data = unwrap(self._request("GET", f"/acts/{actor_path(actor_id)}"))
        return self._model(ActorDetails, data)


__all__ = [
    "ApifyClient",
    "actor_path",
    "classify_response",
    "dataset_from_body",
    "provider_message",
    "run_handle_from_body",
    "run_path",
    "unwrap",
    "validate_base_url",
]
