"""Typed models for actor input schemas and validation findings."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Literal, TypeAlias, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from actor_runner.enums import PropertyType, ValidationReason
from actor_runner.errors import SchemaError
from actor_runner.schema.base import FrozenModel

InputValueMap: TypeAlias = dict[str, Any]
ResultSet: TypeAlias = list[Any]


class _PropertyBase(FrozenModel):
    title: str | None = None
    description: str | None = None
    default: Any = None
    enum: tuple[Any, ...] | None = None
    editor: str | None = None

    @property
    def property_type(self) -> PropertyType:
        return PropertyType(getattr(self, "type"))

    @property
    def has_default(self) -> bool:
        """True when the document declared a default, even a null one."""
        return "default" in self.model_fields_set


class StringProperty(_PropertyBase):
    type: Literal["string"] = "string"
    min_length: int | None = Field(None, alias="minLength", ge=0)
    max_length: int | None = Field(None, alias="maxLength", ge=0)
    format: str | None = None


class NumberProperty(_PropertyBase):
    type: Literal["number"] = "number"
    minimum: float | None = None
    maximum: float | None = None


class IntegerProperty(_PropertyBase):
    type: Literal["integer"] = "integer"
    minimum: float | None = None
    maximum: float | None = None


class BooleanProperty(_PropertyBase):
    type: Literal["boolean"] = "boolean"


class ArrayProperty(_PropertyBase):
    type: Literal["array"] = "array"
    items: PropertyDescriptor | None = None

    @property
    def is_url_list(self) -> bool:
        """Arrays whose elements look like `{url: string}` request records."""
        if self.editor == "requestListSources":
            return True
        item = self.items
        if not isinstance(item, ObjectProperty):
            return False
        return isinstance(item.properties.get("url"), StringProperty)


class ObjectProperty(_PropertyBase):
    type: Literal["object"] = "object"
    properties: dict[str, PropertyDescriptor] = Field(default_factory=dict)
    required: tuple[str, ...] = ()


PropertyDescriptor = Annotated[
    Union[
        StringProperty,
        NumberProperty,
        IntegerProperty,
        BooleanProperty,
        ArrayProperty,
        ObjectProperty,
    ],
    Field(discriminator="type"),
]

ArrayProperty.model_rebuild()
ObjectProperty.model_rebuild()

_DESCRIPTOR_ADAPTER: TypeAdapter[Any] = TypeAdapter(PropertyDescriptor)
_SUPPORTED_TYPES = frozenset(item.value for item in PropertyType)


def _normalize_descriptor(path: str, raw: Any) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise SchemaError(f"{path}: property descriptor must be a mapping")
    descriptor = dict(raw)
    declared = descriptor.setdefault("type", PropertyType.STRING.value)
    if not isinstance(declared, str) or declared not in _SUPPORTED_TYPES:
        raise SchemaError(f"{path}: unsupported property type {declared!r}")
    if descriptor.get("enum") is not None and not isinstance(
        descriptor["enum"], (list, tuple)
    ):
        raise SchemaError(f"{path}: enum must be a list")
    if declared == PropertyType.ARRAY.value and descriptor.get("items") is not None:
        descriptor["items"] = _normalize_descriptor(f"{path}[]", descriptor["items"])
    if declared == PropertyType.OBJECT.value:
        nested = descriptor.get("properties")
        if nested is not None:
            if not isinstance(nested, Mapping):
                raise SchemaError(f"{path}: nested properties must be a mapping")
            descriptor["properties"] = {
                str(key): _normalize_descriptor(f"{path}.{key}", value)
                for key, value in nested.items()
            }
        nested_required = descriptor.get("required")
        if nested_required is not None:
            if not isinstance(nested_required, (list, tuple)) or not all(
                isinstance(name, str) for name in nested_required
            ):
                raise SchemaError(f"{path}: required must be a list of property names")
            descriptor["required"] = tuple(nested_required)
    return descriptor


def parse_descriptor(name: str, raw: Any) -> Any:
    """Build a typed descriptor from one raw schema property."""
    normalized = _normalize_descriptor(name, raw)
    try:
        return _DESCRIPTOR_ADAPTER.validate_python(normalized)
    except PydanticValidationError as exc:
        raise SchemaError(f"{name}: invalid property descriptor ({exc})") from exc


class SchemaModel(FrozenModel):
    """Ordered property descriptors plus the set of required field names."""

    properties: dict[str, PropertyDescriptor]
    required: tuple[str, ...] = ()
    title: str | None = None
    description: str | None = None

    @classmethod
    def from_document(cls, document: Any) -> SchemaModel:
        """Model a raw provider schema, failing with SchemaError when malformed."""
        if not isinstance(document, Mapping):
            raise SchemaError("Schema document must be a mapping")
        raw_properties = document.get("properties")
        if raw_properties is None:
            raise SchemaError("Schema document has no 'properties'")
        if not isinstance(raw_properties, Mapping):
            raise SchemaError("Schema 'properties' must be a mapping")

        properties = {
            str(name): parse_descriptor(str(name), raw)
            for name, raw in raw_properties.items()
        }

        raw_required = document.get("required") or ()
        if isinstance(raw_required, (str, bytes)) or not isinstance(
            raw_required, (list, tuple, set, frozenset)
        ):
            raise SchemaError("Schema 'required' must be a list of property names")
        required: list[str] = []
        for name in raw_required:
            if not isinstance(name, str):
                raise SchemaError(f"Required entry {name!r} is not a property name")
            if name not in properties:
                raise SchemaError(f"Required field {name!r} has no matching property")
            if name not in required:
                required.append(name)

        title = document.get("title")
        description = document.get("description")
        return cls(
            properties=properties,
            required=tuple(required),
            title=title if isinstance(title, str) else None,
            description=description if isinstance(description, str) else None,
        )

    def names(self) -> list[str]:
        return list(self.properties)

    def items(self) -> Iterator[tuple[str, Any]]:
        yield from self.properties.items()

    def descriptor(self, name: str) -> Any:
        try:
            return self.properties[name]
        except KeyError:
            raise KeyError(f"Unknown property: {name}") from None

    def is_required(self, name: str) -> bool:
        return name in self.required


class FieldError(FrozenModel):
    """One rejected field of a candidate input."""

    field: str
    reason: ValidationReason
    detail: str

    def to_payload(self) -> dict[str, str]:
        return {"field": self.field, "reason": self.reason.value, "detail": self.detail}


__all__ = [
    "ArrayProperty",
    "BooleanProperty",
    "FieldError",
    "InputValueMap",
    "IntegerProperty",
    "NumberProperty",
    "ObjectProperty",
    "PropertyDescriptor",
    "ResultSet",
    "SchemaModel",
    "StringProperty",
    "parse_descriptor",
]
