"""Input schema models for provider actors."""

from __future__ import annotations

from .builtin import BUILTIN_SCHEMAS, generic_schema, resolve_input_schema
from .models import (
    ArrayProperty,
    BooleanProperty,
    FieldError,
    InputValueMap,
    IntegerProperty,
    NumberProperty,
    ObjectProperty,
    PropertyDescriptor,
    ResultSet,
    SchemaModel,
    StringProperty,
)

__all__ = [
    "ArrayProperty",
    "BooleanProperty",
    "BUILTIN_SCHEMAS",
    "FieldError",
    "InputValueMap",
    "IntegerProperty",
    "NumberProperty",
    "ObjectProperty",
    "PropertyDescriptor",
    "ResultSet",
    "SchemaModel",
    "StringProperty",
    "generic_schema",
    "resolve_input_schema",
]
