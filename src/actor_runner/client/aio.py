"""Cooperative HTTP client for the provider's actor API, built on aiohttp."""

from __future__ import annotations

import asyncio
import json as jsonlib
import logging
from typing import Any

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from actor_runner.client.base import AsyncExecutionClient, RunHandle
from actor_runner.client.http import (
    actor_path,
    classify_response,
    dataset_from_body,
    run_handle_from_body,
    run_path,
    validate_base_url,
)
from actor_runner.config.defaults import DEFAULT_BASE_URL
from actor_runner.enums import ErrorKind
from actor_runner.errors import TransportError
from actor_runner.schema.models import InputValueMap, ResultSet
from actor_runner.session import SessionContext

logger = logging.getLogger(__name__)


class AsyncApifyClient(AsyncExecutionClient):
    """Async twin of `ApifyClient` used by `RunLifecycleManager.aexecute`.

    Pass `http` to reuse an existing `ClientSession`; otherwise a short-lived
    session is opened per request with the configured total timeout.
    """

    def __init__(
        self,
        session: SessionContext,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http: ClientSession | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.session = session
        self.base_url = validate_base_url(base_url)
        self.timeout = ClientTimeout(total=timeout)
        self._http = http

    def _headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", **self.session.auth_headers()}

    async def _send(
        self,
        http: Any,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        json: Any,
    ) -> Any:
        async with http.request(
            method, url, params=params, json=json, headers=self._headers()
        ) as response:
            status_code = response.status
            text = await response.text()
        return classify_response(status_code, lambda: jsonlib.loads(text))

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            if self._http is not None:
                return await self._send(self._http, method, url, params, json)
            async with aiohttp.ClientSession(timeout=self.timeout) as http:
                return await self._send(http, method, url, params, json)
        except asyncio.TimeoutError as exc:
            raise TransportError(
                ErrorKind.UPSTREAM,
                "Request timeout - the operation took too long",
                timed_out=True,
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(
                ErrorKind.UPSTREAM, f"Service unavailable - network error ({exc})"
            ) from exc

    async def submit_run(self, actor_id: str, input_values: InputValueMap) -> RunHandle:
        body = await self._request(
            "POST", f"/acts/{actor_path(actor_id)}/runs", json=input_values
        )
        return run_handle_from_body(actor_id, body)

    async def get_run_status(self, actor_id: str, run_id: str) -> RunHandle:
        body = await self._request("GET", run_path(actor_id, run_id))
        return run_handle_from_body(actor_id, body)

    async def get_dataset_items(self, actor_id: str, run_id: str) -> ResultSet:
        body = await self._request(
            "GET",
            f"{run_path(actor_id, run_id)}/dataset/items",
            params={"format": "json"},
        )
        return dataset_from_body(body)


__all__ = ["AsyncApifyClient"]
