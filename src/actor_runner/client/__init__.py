"""Execution clients for the provider's actor API."""

from __future__ import annotations

from .aio import AsyncApifyClient
from .base import (
    ActorCatalog,
    ActorDetails,
    ActorSummary,
    AsyncExecutionClient,
    ExecutionClient,
    ProviderClient,
    RunHandle,
)
from .http import ApifyClient
from .scripted import AsyncScriptedClient, ScriptedClient

__all__ = [
    "ActorCatalog",
    "ActorDetails",
    "ActorSummary",
    "ApifyClient",
    "AsyncApifyClient",
    "AsyncExecutionClient",
    "AsyncScriptedClient",
    "ExecutionClient",
    "ProviderClient",
    "RunHandle",
    "ScriptedClient",
]
