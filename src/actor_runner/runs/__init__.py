"""Run lifecycle: state machine and polling manager."""

from __future__ import annotations

from .lifecycle import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT_BUDGET,
    RunLifecycleManager,
)
from .state_machine import RunStateMachine

__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_TIMEOUT_BUDGET",
    "RunLifecycleManager",
    "RunStateMachine",
]
