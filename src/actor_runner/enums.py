"""Centralized semantic enums for Actor Runner."""

from __future__ import annotations

from enum import Enum


class PropertyType(str, Enum):
    """Input property types understood by the form compiler."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class ValidationReason(str, Enum):
    """Why a single field of a candidate input was rejected."""

    REQUIRED_MISSING = "REQUIRED_MISSING"
    TOO_SHORT = "TOO_SHORT"
    TOO_LONG = "TOO_LONG"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    ABOVE_MAXIMUM = "ABOVE_MAXIMUM"
    MALFORMED = "MALFORMED"


class RunStatus(str, Enum):
    """Lifecycle states of a remote actor run."""

    READY = "READY"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    ABORTED = "ABORTED"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def from_provider(cls, value: object) -> RunStatus:
        """Map a provider status string, treating unknown values as in flight."""
        text = str(value or "").strip().upper().replace("-", "_")
        if text in _TRANSITIONAL_PROVIDER_STATUSES:
            return cls.RUNNING
        try:
            return cls(text)
        except ValueError:
            return cls.RUNNING


# Provider states that are still winding down and may not be treated as final.
_TRANSITIONAL_PROVIDER_STATUSES = frozenset({"TIMING_OUT", "ABORTING"})


TERMINAL_STATUSES: frozenset[RunStatus] = frozenset(
    {
        RunStatus.SUCCEEDED,
        RunStatus.FAILED,
        RunStatus.ABORTED,
        RunStatus.TIMED_OUT,
    }
)


class ErrorKind(str, Enum):
    """Every failure kind that may reach a caller."""

    MALFORMED = "MALFORMED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM = "UPSTREAM"
    FAILED = "FAILED"
    ABORTED = "ABORTED"
    TIMEOUT = "TIMEOUT"
    RUN_NOT_FOUND = "RUN_NOT_FOUND"


class ActorSource(str, Enum):
    """Where a catalog entry came from."""

    USER = "user"
    PUBLIC = "public"


class ActorSortKey(str, Enum):
    """Orderings offered when browsing the actor catalog."""

    NAME = "name"
    CREATED = "created"
    MODIFIED = "modified"
