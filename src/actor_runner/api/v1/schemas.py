"""API v1 request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RunRequestV1(BaseModel):
    """Body of `POST /api/actors/{actorId}/run`."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    input: dict[str, Any] = Field(..., description="Actor input values.")
    timeout: float | None = Field(
        None,
        ge=0,
        le=3600,
        alias="timeoutSecs",
        description="Overall wait budget in seconds.",
    )
    poll_interval: float | None = Field(
        None,
        gt=0,
        le=60,
        alias="pollIntervalSecs",
        description="Seconds between status checks.",
    )


class RunResultV1(BaseModel):
    """Outcome of a completed run."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(..., serialization_alias="runId")
    status: str
    run_url: str = Field(..., serialization_alias="runUrl")
    results: list[Any]
    count: int


class SuccessResponseV1(BaseModel):
    """Envelope for every successful response."""

    success: bool = True
    data: Any
    count: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, mode="json")
        if payload["count"] is None:
            payload.pop("count")
        return payload


__all__ = ["RunRequestV1", "RunResultV1", "SuccessResponseV1"]
