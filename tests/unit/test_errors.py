from __future__ import annotations

import pytest

from actor_runner.api.v1.errors import (
    APIErrorCode,
    HTTP_STATUS_BY_CODE,
    InputRejectedError,
    code_for_error,
    domain_error_body,
)
from actor_runner.enums import ErrorKind, ValidationReason
from actor_runner.errors import (
    ERROR_PROFILES,
    RunError,
    SchemaError,
    TransportError,
    error_payload,
    error_profile_for,
)
from actor_runner.schema.models import FieldError


def test_every_kind_has_a_profile() -> None:
    assert set(ERROR_PROFILES) == set(ErrorKind)
    assert error_profile_for(ErrorKind.RATE_LIMITED).retryable
    assert not error_profile_for(ErrorKind.UNAUTHORIZED).retryable


def test_error_families_guard_their_kinds() -> None:
    with pytest.raises(ValueError):
        RunError(ErrorKind.UNAUTHORIZED, "wrong family")
    with pytest.raises(ValueError):
        TransportError(ErrorKind.FAILED, "wrong family")
    assert SchemaError("bad").kind is ErrorKind.MALFORMED


def test_payload_is_kind_and_detail() -> None:
    exc = RunError(ErrorKind.TIMEOUT, "too slow", run_id="r1")
    assert error_payload(exc) == {"kind": "TIMEOUT", "detail": "too slow"}
    assert str(exc) == "too slow"


@pytest.mark.parametrize(
    ("status_code", "kind", "detail"),
    [
        (401, ErrorKind.UNAUTHORIZED, "Invalid API key or unauthorized access"),
        (403, ErrorKind.UNAUTHORIZED, "Invalid API key or unauthorized access"),
        (404, ErrorKind.NOT_FOUND, "Resource not found"),
        (429, ErrorKind.RATE_LIMITED, "Rate limit exceeded - too many requests"),
        (500, ErrorKind.UPSTREAM, "Provider API error: status 500"),
    ],
)
def test_from_status(status_code: int, kind: ErrorKind, detail: str) -> None:
    exc = TransportError.from_status(status_code)
    assert exc.kind is kind
    assert exc.detail == detail


@pytest.mark.parametrize(
    ("exc", "code", "http_status"),
    [
        (TransportError(ErrorKind.UNAUTHORIZED, "x", 401), APIErrorCode.UNAUTHORIZED, 401),
        (TransportError(ErrorKind.NOT_FOUND, "x", 404), APIErrorCode.NOT_FOUND, 404),
        (TransportError(ErrorKind.RATE_LIMITED, "x", 429), APIErrorCode.RATE_LIMITED, 429),
        (TransportError(ErrorKind.UPSTREAM, "x", 500), APIErrorCode.UPSTREAM_ERROR, 502),
        (TransportError(ErrorKind.UPSTREAM, "x"), APIErrorCode.SERVICE_UNAVAILABLE, 503),
        (
            TransportError(ErrorKind.UPSTREAM, "x", timed_out=True),
            APIErrorCode.TIMEOUT,
            408,
        ),
        (RunError(ErrorKind.FAILED, "x"), APIErrorCode.RUN_FAILED, 502),
        (RunError(ErrorKind.ABORTED, "x"), APIErrorCode.RUN_FAILED, 502),
        (RunError(ErrorKind.TIMEOUT, "x"), APIErrorCode.TIMEOUT, 408),
        (RunError(ErrorKind.RUN_NOT_FOUND, "x"), APIErrorCode.NOT_FOUND, 404),
        (SchemaError("x"), APIErrorCode.VALIDATION_ERROR, 400),
    ],
)
def test_domain_errors_map_to_http(exc, code: APIErrorCode, http_status: int) -> None:  # type: ignore[no-untyped-def]
    assert code_for_error(exc) is code
    assert HTTP_STATUS_BY_CODE[code] == http_status
    body = domain_error_body(exc)
    assert body["success"] is False
    assert body["http_status"] == http_status
    assert body["error"] == {
        "kind": exc.kind.value,
        "detail": "x",
        "code": code.value,
        "retryable": error_profile_for(exc.kind).retryable,
    }


def test_error_body_flags_retryable_kinds() -> None:
    limited = domain_error_body(TransportError(ErrorKind.RATE_LIMITED, "slow", 429))
    denied = domain_error_body(TransportError(ErrorKind.UNAUTHORIZED, "no", 401))
    assert limited["error"]["retryable"] is True
    assert denied["error"]["retryable"] is False


def test_rejected_input_lists_fields_in_order() -> None:
    exc = InputRejectedError(
        frozenset(
            {
                FieldError(field="b", reason=ValidationReason.TOO_LONG, detail="2"),
                FieldError(
                    field="a", reason=ValidationReason.REQUIRED_MISSING, detail="1"
                ),
            }
        )
    )
    assert [item["field"] for item in exc.field_payloads()] == ["a", "b"]
    assert exc.field_payloads()[0]["reason"] == "REQUIRED_MISSING"
