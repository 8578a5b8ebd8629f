"""Schema-driven input compilation: seed values, coerce raw text, validate.

Every function here is total. Validation problems come back as data
(`FieldError` records) and malformed user text degrades to the type's empty
value, so a half-finished edit never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import json
import math
from typing import Any

from actor_runner.enums import PropertyType, ValidationReason
from actor_runner.schema.models import (
    ArrayProperty,
    FieldError,
    InputValueMap,
    SchemaModel,
    parse_descriptor,
)

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_NUMERIC_TYPES = frozenset({PropertyType.NUMBER, PropertyType.INTEGER})


def empty_value(descriptor: Any) -> Any:
    """Return the value an untouched field of this type starts with."""
    kind = descriptor.property_type
    if kind is PropertyType.ARRAY:
        return []
    if kind is PropertyType.OBJECT:
        return {}
    if kind is PropertyType.BOOLEAN:
        return False
    return ""


def is_empty(value: Any) -> bool:
    """Apply the per-type empty-value convention used for required checks."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def default_values(schema: SchemaModel) -> InputValueMap:
    """Seed a candidate with declared defaults or per-type empty values."""
    values: InputValueMap = {}
    for name, descriptor in schema.items():
        if descriptor.has_default:
            values[name] = copy.deepcopy(descriptor.default)
        else:
            values[name] = empty_value(descriptor)
    return values


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _check_field(name: str, descriptor: Any, value: Any) -> list[FieldError]:
    kind = descriptor.property_type
    found: list[FieldError] = []

    if kind is PropertyType.STRING:
        if not isinstance(value, str):
            return [
                FieldError(
                    field=name,
                    reason=ValidationReason.MALFORMED,
                    detail=f"Expected text, got {type(value).__name__}",
                )
            ]
        if descriptor.min_length is not None and len(value) < descriptor.min_length:
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.TOO_SHORT,
                    detail=f"Minimum length is {descriptor.min_length} characters",
                )
            )
        if descriptor.max_length is not None and len(value) > descriptor.max_length:
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.TOO_LONG,
                    detail=f"Maximum length is {descriptor.max_length} characters",
                )
            )

    elif kind in _NUMERIC_TYPES:
        if not _is_number(value) or (
            isinstance(value, float) and not math.isfinite(value)
        ):
            return [
                FieldError(
                    field=name,
                    reason=ValidationReason.MALFORMED,
                    detail=f"Expected a number, got {value!r}",
                )
            ]
        if (
            kind is PropertyType.INTEGER
            and isinstance(value, float)
            and not value.is_integer()
        ):
            return [
                FieldError(
                    field=name,
                    reason=ValidationReason.MALFORMED,
                    detail=f"Expected a whole number, got {value!r}",
                )
            ]
        if descriptor.minimum is not None and value < descriptor.minimum:
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.BELOW_MINIMUM,
                    detail=f"Minimum value is {_format_bound(descriptor.minimum)}",
                )
            )
        if descriptor.maximum is not None and value > descriptor.maximum:
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.ABOVE_MAXIMUM,
                    detail=f"Maximum value is {_format_bound(descriptor.maximum)}",
                )
            )

    elif kind is PropertyType.OBJECT:
        if not isinstance(value, Mapping):
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.MALFORMED,
                    detail="Value is not a valid JSON object",
                )
            )

    elif kind is PropertyType.ARRAY:
        if not isinstance(value, (list, tuple)):
            found.append(
                FieldError(
                    field=name,
                    reason=ValidationReason.MALFORMED,
                    detail="Value is not a list",
                )
            )

    if (
        not found
        and descriptor.enum
        and kind not in (PropertyType.ARRAY, PropertyType.OBJECT)
        and value not in descriptor.enum
    ):
        found.append(
            FieldError(
                field=name,
                reason=ValidationReason.MALFORMED,
                detail=f"Value {value!r} is not one of the allowed options",
            )
        )
    return found


def validate(schema: SchemaModel, candidate: Mapping[str, Any]) -> frozenset[FieldError]:
    """Return every problem with `candidate`; an empty set means submittable.

    A required field that is missing reports REQUIRED_MISSING only. Optional
    fields left empty are not checked. Keys unknown to the schema are ignored.
    """
    errors: list[FieldError] = []
    for name, descriptor in schema.items():
        present = name in candidate
        value = candidate.get(name)
        if not present or is_empty(value):
            if schema.is_required(name):
                errors.append(
                    FieldError(
                        field=name,
                        reason=ValidationReason.REQUIRED_MISSING,
                        detail="This field is required",
                    )
                )
            continue
        errors.extend(_check_field(name, descriptor, value))
    return frozenset(errors)


def _parse_number(text: str, integer: bool) -> int | float | str:
    stripped = text.strip()
    if not stripped:
        return ""
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        parsed = float(stripped)
    except ValueError:
        return ""
    if not math.isfinite(parsed):
        return ""
    if integer and parsed.is_integer():
        return int(parsed)
    return parsed


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _resolve_descriptor(descriptor: Any) -> Any:
    if isinstance(descriptor, (str, PropertyType)):
        return parse_descriptor("value", {"type": PropertyType(descriptor).value})
    return descriptor


def coerce(raw_text: Any, descriptor: Any) -> Any:
    """Turn raw editor text into a value of the descriptor's runtime kind.

    `descriptor` may be a full property descriptor or just a PropertyType.
    """
    descriptor = _resolve_descriptor(descriptor)
    text = "" if raw_text is None else str(raw_text)
    kind = descriptor.property_type

    if kind in _NUMERIC_TYPES:
        return _parse_number(text, integer=kind is PropertyType.INTEGER)
    if kind is PropertyType.BOOLEAN:
        return text.strip().lower() in _TRUE_WORDS
    if kind is PropertyType.ARRAY:
        lines = _split_lines(text)
        if isinstance(descriptor, ArrayProperty) and descriptor.is_url_list:
            return [{"url": line} for line in lines]
        return lines
    if kind is PropertyType.OBJECT:
        try:
            parsed = json.loads(text)
        except (ValueError, RecursionError):
            return text
        return parsed if isinstance(parsed, dict) else text
    return text


def render_text(value: Any, descriptor: Any) -> str:
    """Render a value back into the editable text form `coerce` accepts."""
    descriptor = _resolve_descriptor(descriptor)
    kind = descriptor.property_type
    if value is None:
        return ""
    if kind is PropertyType.ARRAY:
        if not isinstance(value, (list, tuple)):
            return ""
        lines = []
        for item in value:
            if isinstance(item, Mapping) and "url" in item:
                lines.append(str(item["url"]))
            elif isinstance(item, (Mapping, list)):
                lines.append(json.dumps(item))
            else:
                lines.append(str(item))
        return "\n".join(lines)
    if kind is PropertyType.OBJECT:
        if isinstance(value, str):
            return value
        return json.dumps(value, indent=2)
    if kind is PropertyType.BOOLEAN:
        return "true" if value else "false"
    return str(value)


def compile_input(
    schema: SchemaModel, raw_edits: Mapping[str, Any]
) -> tuple[InputValueMap, frozenset[FieldError]]:
    """Build a candidate from defaults plus raw edits, then validate it.

    String edits are coerced per property type; already-typed values pass
    through. Edits for names the schema does not declare are dropped.
    """
    values = default_values(schema)
    for name, raw in raw_edits.items():
        if name not in schema.properties:
            continue
        descriptor = schema.descriptor(name)
        if isinstance(raw, str):
            values[name] = coerce(raw, descriptor)
        else:
            values[name] = copy.deepcopy(raw)
    return values, validate(schema, values)


def prune_empty(schema: SchemaModel, candidate: Mapping[str, Any]) -> InputValueMap:
    """Drop optional numeric fields left blank so the provider default applies."""
    pruned: InputValueMap = {}
    for name, value in candidate.items():
        descriptor = schema.properties.get(name)
        if (
            descriptor is not None
            and descriptor.property_type in _NUMERIC_TYPES
            and value == ""
            and not schema.is_required(name)
        ):
            continue
        pruned[name] = value
    return pruned


class FormCompiler:
    """Stateless facade over the compilation functions."""

    default_values = staticmethod(default_values)
    validate = staticmethod(validate)
    coerce = staticmethod(coerce)
    render_text = staticmethod(render_text)
    compile = staticmethod(compile_input)
    prune_empty = staticmethod(prune_empty)


__all__ = [
    "FormCompiler",
    "coerce",
    "compile_input",
    "default_values",
    "empty_value",
    "is_empty",
    "prune_empty",
    "render_text",
    "validate",
]
