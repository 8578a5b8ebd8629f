"""Schema-driven input form compilation."""

from __future__ import annotations

from .compiler import (
    FormCompiler,
    coerce,
    compile_input,
    default_values,
    prune_empty,
    render_text,
    validate,
)
from .widgets import FormField, build_form

__all__ = [
    "FormCompiler",
    "FormField",
    "build_form",
    "coerce",
    "compile_input",
    "default_values",
    "prune_empty",
    "render_text",
    "validate",
]
