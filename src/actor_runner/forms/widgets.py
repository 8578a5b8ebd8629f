"""Map schema properties to editor widget descriptors.

Type mappings:
- string with enum -> select
- string with textarea format/editor or maxLength > 100 -> textarea
- string -> text
- integer -> number (step 1), number -> number (step "any")
- boolean -> checkbox
- array of `{url}` records -> url_list (one URL per line)
- other arrays -> lines (one item per line)
- object -> json
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from actor_runner.enums import PropertyType
from actor_runner.forms.compiler import default_values, render_text
from actor_runner.schema.base import FrozenModel
from actor_runner.schema.models import ArrayProperty, SchemaModel

WidgetKind = Literal[
    "select", "textarea", "text", "number", "checkbox", "url_list", "lines", "json"
]

LONG_TEXT_THRESHOLD = 100


class FormField(FrozenModel):
    """Everything an editor needs to render one input field."""

    name: str
    label: str
    widget: WidgetKind
    required: bool = False
    help_text: str | None = None
    placeholder: str = ""
    options: tuple[Any, ...] = ()
    step: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    initial_text: str = ""
    hints: dict[str, Any] = Field(default_factory=dict)


def _widget_for(descriptor: Any) -> WidgetKind:
    kind = descriptor.property_type
    if kind is PropertyType.STRING:
        if descriptor.enum:
            return "select"
        if (
            descriptor.format == "textarea"
            or descriptor.editor == "textarea"
            or (
                descriptor.max_length is not None
                and descriptor.max_length > LONG_TEXT_THRESHOLD
            )
        ):
            return "textarea"
        return "text"
    if kind in (PropertyType.NUMBER, PropertyType.INTEGER):
        return "number"
    if kind is PropertyType.BOOLEAN:
        return "checkbox"
    if kind is PropertyType.ARRAY:
        if isinstance(descriptor, ArrayProperty) and descriptor.is_url_list:
            return "url_list"
        return "lines"
    return "json"


def _placeholder(name: str, descriptor: Any, widget: WidgetKind) -> str:
    if widget == "url_list":
        return "Enter URLs (one per line)"
    if widget == "select":
        return "Select an option"
    if widget == "lines":
        return descriptor.description or f"Enter {name} (one per line)"
    if widget == "json":
        return descriptor.description or f"Enter {name} as JSON"
    return descriptor.description or f"Enter {name}"


def build_form(schema: SchemaModel) -> list[FormField]:
    """Describe one widget per schema property, in property order."""
    seeds = default_values(schema)
    fields: list[FormField] = []
    for name, descriptor in schema.items():
        widget = _widget_for(descriptor)
        numeric = widget == "number"
        fields.append(
            FormField(
                name=name,
                label=descriptor.title or name,
                widget=widget,
                required=schema.is_required(name),
                help_text=descriptor.description,
                placeholder=_placeholder(name, descriptor, widget),
                options=tuple(descriptor.enum or ()),
                step=(
                    ("1" if descriptor.property_type is PropertyType.INTEGER else "any")
                    if numeric
                    else None
                ),
                minimum=descriptor.minimum if numeric else None,
                maximum=descriptor.maximum if numeric else None,
                initial_text=render_text(seeds[name], descriptor),
                hints=(
                    {"note": "Each URL will be converted to the required format."}
                    if widget == "url_list"
                    else {}
                ),
            )
        )
    return fields


__all__ = ["FormField", "WidgetKind", "build_form"]
