"""Shared Pydantic base class with consistent configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class TypedBaseModel(BaseModel):
    """Centralized typed base so every schema shares one contract."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


class FrozenModel(TypedBaseModel):
    """Immutable model used for values built from provider responses."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)
