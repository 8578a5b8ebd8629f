"""Credential context passed explicitly to clients and handlers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

from actor_runner.enums import ErrorKind
from actor_runner.errors import TransportError

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
_BEARER_PREFIX = "bearer "


@dataclass
class SessionContext:
    """Holds the provider token for one user session.

    Created at session start and cleared only by `logout()`; nothing in the
    core expires it.
    """

    token: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.token is not None:
            self.token = normalize_credential(self.token)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def require_token(self) -> str:
        if self.token is None:
            raise TransportError(ErrorKind.UNAUTHORIZED, "API key is required")
        return self.token

    def logout(self) -> None:
        self.token = None

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}


def normalize_credential(raw: object) -> str:
    """Strip a credential and reject blank or non-text values."""
    if not isinstance(raw, str) or not raw.strip():
        raise TransportError(ErrorKind.UNAUTHORIZED, "Invalid API key format.")
    return raw.strip()


def credential_from_headers(headers: Mapping[str, str]) -> str:
    """Extract the token from `X-API-Key` or an `Authorization: Bearer` header."""
    lowered = {str(key).lower(): value for key, value in headers.items()}
    raw = lowered.get(API_KEY_HEADER)
    if not raw:
        authorization = lowered.get(AUTHORIZATION_HEADER) or ""
        if authorization.lower().startswith(_BEARER_PREFIX):
            raw = authorization[len(_BEARER_PREFIX) :]
        else:
            raw = authorization
    if not raw:
        raise TransportError(
            ErrorKind.UNAUTHORIZED,
            "API key is required. Please provide it in the X-API-Key header "
            "or Authorization header.",
        )
    return normalize_credential(raw)


def session_from_headers(headers: Mapping[str, str]) -> SessionContext:
    return SessionContext(token=credential_from_headers(headers))


__all__ = [
    "SessionContext",
    "credential_from_headers",
    "normalize_credential",
    "session_from_headers",
]
