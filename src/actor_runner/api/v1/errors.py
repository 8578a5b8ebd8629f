"""API v1 error taxonomy and HTTP mapping."""

from __future__ import annotations

from enum import Enum
from typing import Any

from actor_runner.enums import ErrorKind
from actor_runner.errors import ActorRunnerError, TransportError, error_profile_for
from actor_runner.schema.models import FieldError


class APIErrorCode(str, Enum):
    """Stable error codes exposed by the API layer."""

    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT = "TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    RUN_FAILED = "RUN_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


HTTP_STATUS_BY_CODE: dict[APIErrorCode, int] = {
    APIErrorCode.INVALID_REQUEST: 400,
    APIErrorCode.VALIDATION_ERROR: 400,
    APIErrorCode.UNAUTHORIZED: 401,
    APIErrorCode.NOT_FOUND: 404,
    APIErrorCode.RATE_LIMITED: 429,
    APIErrorCode.TIMEOUT: 408,
    APIErrorCode.UPSTREAM_ERROR: 502,
    APIErrorCode.SERVICE_UNAVAILABLE: 503,
    APIErrorCode.RUN_FAILED: 502,
    APIErrorCode.INTERNAL_ERROR: 500,
}

CODE_BY_KIND: dict[ErrorKind, APIErrorCode] = {
    ErrorKind.MALFORMED: APIErrorCode.VALIDATION_ERROR,
    ErrorKind.UNAUTHORIZED: APIErrorCode.UNAUTHORIZED,
    ErrorKind.NOT_FOUND: APIErrorCode.NOT_FOUND,
    ErrorKind.RATE_LIMITED: APIErrorCode.RATE_LIMITED,
    ErrorKind.UPSTREAM: APIErrorCode.UPSTREAM_ERROR,
    ErrorKind.FAILED: APIErrorCode.RUN_FAILED,
    ErrorKind.ABORTED: APIErrorCode.RUN_FAILED,
    ErrorKind.TIMEOUT: APIErrorCode.TIMEOUT,
    ErrorKind.RUN_NOT_FOUND: APIErrorCode.NOT_FOUND,
}

if set(HTTP_STATUS_BY_CODE) != set(APIErrorCode) or set(CODE_BY_KIND) != set(
    ErrorKind
):
    raise RuntimeError("API error mapping must cover every code and error kind")


class InputRejectedError(Exception):
    """Raised when a run request's input fails validation against the schema."""

    def __init__(self, errors: frozenset[FieldError]) -> None:
        super().__init__("Input failed validation against the actor schema")
        self.errors = errors

    def field_payloads(self) -> list[dict[str, str]]:
        return [
            error.to_payload()
            for error in sorted(self.errors, key=lambda item: (item.field, item.reason))
        ]


def code_for_error(exc: ActorRunnerError) -> APIErrorCode:
    """Pick the API code for a domain failure.

    Transport timeouts surface as 408 and network failures without any HTTP
    status as 503; other upstream faults are 502.
    """
    if isinstance(exc, TransportError) and exc.kind is ErrorKind.UPSTREAM:
        if exc.timed_out:
            return APIErrorCode.TIMEOUT
        if exc.status_code is None:
            return APIErrorCode.SERVICE_UNAVAILABLE
    return CODE_BY_KIND[exc.kind]


def error_body(
    code: APIErrorCode,
    kind: str,
    detail: str,
    fields: list[dict[str, str]] | None = None,
    retryable: bool | None = None,
) -> dict[str, Any]:
    """Build the `{success: false, error: {...}}` envelope."""
    error: dict[str, Any] = {"kind": kind, "detail": detail, "code": code.value}
    if fields is not None:
        error["fields"] = fields
    if retryable is not None:
        error["retryable"] = retryable
    return {"success": False, "error": error, "http_status": HTTP_STATUS_BY_CODE[code]}


def domain_error_body(exc: ActorRunnerError) -> dict[str, Any]:
    payload = exc.to_payload()
    return error_body(
        code_for_error(exc),
        payload["kind"],
        payload["detail"],
        retryable=error_profile_for(exc.kind).retryable,
    )


__all__ = [
    "APIErrorCode",
    "CODE_BY_KIND",
    "HTTP_STATUS_BY_CODE",
    "InputRejectedError",
    "code_for_error",
    "domain_error_body",
    "error_body",
]
