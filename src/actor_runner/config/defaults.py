"""Explicit default settings for talking to the provider and polling runs."""

from __future__ import annotations

DEFAULT_BASE_URL = "https://api.apify.com/v2"
CONSOLE_BASE_URL = "https://console.apify.com"

RUNNER_DEFAULTS: dict[str, object] = {
    "base_url": DEFAULT_BASE_URL,
    "timeout_budget": 60.0,
    "poll_interval": 2.0,
    "http_timeout": 30.0,
    "public_actor_limit": 10,
}
