"""Failure taxonomy shared by the schema, transport and run layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from actor_runner.enums import ErrorKind

SCHEMA_KINDS = frozenset({ErrorKind.MALFORMED})
TRANSPORT_KINDS = frozenset(
    {
        ErrorKind.UNAUTHORIZED,
        ErrorKind.NOT_FOUND,
        ErrorKind.RATE_LIMITED,
        ErrorKind.UPSTREAM,
    }
)
RUN_KINDS = frozenset(
    {
        ErrorKind.FAILED,
        ErrorKind.ABORTED,
        ErrorKind.TIMEOUT,
        ErrorKind.RUN_NOT_FOUND,
    }
)


class ActorRunnerError(RuntimeError):
    """Base error carrying a machine-readable kind and a human detail."""

    allowed_kinds: frozenset[ErrorKind] = frozenset(ErrorKind)

    def __init__(self, kind: ErrorKind, detail: str) -> None:
        if kind not in self.allowed_kinds:
            raise ValueError(f"{type(self).__name__} cannot carry kind {kind.value}")
        super().__init__(detail)
        self.kind = kind
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "detail": self.detail}


class SchemaError(ActorRunnerError):
    """Raised when a raw input schema document cannot be modelled."""

    allowed_kinds = SCHEMA_KINDS

    def __init__(self, detail: str) -> None:
        super().__init__(ErrorKind.MALFORMED, detail)


class TransportError(ActorRunnerError):
    """Raised by execution clients when the provider call fails."""

    allowed_kinds = TRANSPORT_KINDS

    def __init__(
        self,
        kind: ErrorKind,
        detail: str,
        status_code: int | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(kind, detail)
        self.status_code = status_code
        self.timed_out = timed_out

    @classmethod
    def from_status(cls, status_code: int, message: str | None = None) -> TransportError:
        """Classify a non-2xx provider response."""
        if status_code in (401, 403):
            kind = ErrorKind.UNAUTHORIZED
            default = "Invalid API key or unauthorized access"
        elif status_code == 404:
            kind = ErrorKind.NOT_FOUND
            default = "Resource not found"
        elif status_code == 429:
            kind = ErrorKind.RATE_LIMITED
            default = "Rate limit exceeded - too many requests"
        else:
            kind = ErrorKind.UPSTREAM
            default = f"Provider API error: status {status_code}"
        return cls(kind, message or default, status_code=status_code)


class RunError(ActorRunnerError):
    """Raised by the lifecycle manager when a run ends without results."""

    allowed_kinds = RUN_KINDS

    def __init__(self, kind: ErrorKind, detail: str, run_id: str | None = None) -> None:
        super().__init__(kind, detail)
        self.run_id = run_id


@dataclass(frozen=True)
class ErrorProfile:
    retryable: bool


ERROR_PROFILES: dict[ErrorKind, ErrorProfile] = {
    ErrorKind.MALFORMED: ErrorProfile(retryable=False),
    ErrorKind.UNAUTHORIZED: ErrorProfile(retryable=False),
    ErrorKind.NOT_FOUND: ErrorProfile(retryable=False),
    ErrorKind.RATE_LIMITED: ErrorProfile(retryable=True),
    ErrorKind.UPSTREAM: ErrorProfile(retryable=True),
    ErrorKind.FAILED: ErrorProfile(retryable=False),
    ErrorKind.ABORTED: ErrorProfile(retryable=False),
    ErrorKind.TIMEOUT: ErrorProfile(retryable=True),
    ErrorKind.RUN_NOT_FOUND: ErrorProfile(retryable=False),
}


def error_profile_for(kind: ErrorKind) -> ErrorProfile:
    profile = ERROR_PROFILES.get(kind)
    if profile is None:
        raise RuntimeError(f"Missing error profile for {kind.value}")
    return profile


def error_payload(exc: ActorRunnerError) -> dict[str, Any]:
    """Return the `{kind, detail}` surface shown to end users."""
    return exc.to_payload()


if set(ERROR_PROFILES.keys()) != set(ErrorKind):
    missing = set(ErrorKind) - set(ERROR_PROFILES.keys())
    raise RuntimeError(
        "Error profiles must cover all error kinds: "
        f"missing={sorted(kind.value for kind in missing)}"
    )
