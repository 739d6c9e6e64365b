"""Human readable rendering of descriptors and values for diagnostics."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence

from structguard.constants import RENDER_MAX_DEPTH, RENDER_MAX_MEMBERS, VALUE_PREVIEW_LENGTH
from structguard.descriptors.model import (
    UNDEFINED,
    Array,
    Descriptor,
    Forward,
    GenericInstantiation,
    Intersection,
    Literal,
    Object,
    Primitive,
    Reference,
    Tuple,
    TypeParameter,
    Union,
)

__all__ = ["describe_value", "preview_value", "render", "render_key", "render_literal"]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def render_literal(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return repr(value)


def render_key(key: object) -> str:
    """Render an object key the way it appears inside a type literal."""

    if isinstance(key, str) and _IDENTIFIER_RE.match(key):
        return key
    return json.dumps(key if isinstance(key, str) else str(key), ensure_ascii=False)


def render(descriptor: Descriptor, *, depth: int = RENDER_MAX_DEPTH) -> str:
    """Render ``descriptor`` in a compact type-expression syntax."""

    if isinstance(descriptor, Primitive):
        return descriptor.kind.value
    if isinstance(descriptor, Literal):
        return render_literal(descriptor.value)
    if isinstance(descriptor, Reference):
        return descriptor.name
    if isinstance(descriptor, TypeParameter):
        return descriptor.name
    if isinstance(descriptor, Forward):
        return descriptor.name or "<forward>"
    if depth <= 0:
        return "..."

    nested = depth - 1
    if isinstance(descriptor, Array):
        inner = render(descriptor.element, depth=nested)
        if isinstance(descriptor.element, (Union, Intersection)):
            inner = f"({inner})"
        return f"{inner}[]"
    if isinstance(descriptor, Tuple):
        parts = [render(item, depth=nested) for item in descriptor.elements]
        if descriptor.rest is not None:
            parts.append(f"...{render(descriptor.rest, depth=nested)}[]")
        return f"[{', '.join(parts)}]"
    if isinstance(descriptor, Object):
        fields: list[str] = []
        for item in descriptor.properties[:RENDER_MAX_MEMBERS]:
            prefix = "readonly " if item.readonly else ""
            marker = "?" if item.optional else ""
            fields.append(
                f"{prefix}{render_key(item.name)}{marker}: {render(item.descriptor, depth=nested)}"
            )
        if len(descriptor.properties) > RENDER_MAX_MEMBERS:
            fields.append("...")
        if descriptor.index_signature is not None:
            signature = descriptor.index_signature
            fields.append(
                f"[key: {signature.key_kind.value}]: {render(signature.descriptor, depth=nested)}"
            )
        if not fields:
            return "{}"
        return "{ " + "; ".join(fields) + " }"
    if isinstance(descriptor, (Union, Intersection)):
        separator = " | " if isinstance(descriptor, Union) else " & "
        parts = [render(member, depth=nested) for member in descriptor.members[:RENDER_MAX_MEMBERS]]
        if len(descriptor.members) > RENDER_MAX_MEMBERS:
            parts.append("...")
        return separator.join(parts)
    if isinstance(descriptor, GenericInstantiation):
        arguments = ", ".join(render(item, depth=nested) for item in descriptor.arguments)
        return f"{descriptor.base}<{arguments}>"
    return type(descriptor).__name__


def describe_value(value: object) -> str:
    """Name the runtime kind of ``value`` using the descriptor vocabulary."""

    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return "array"
    return type(value).__name__


def preview_value(value: object) -> str:
    """Short literal-ish preview used when the kind alone is ambiguous."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        text = render_literal(value)
    else:
        text = describe_value(value)
    if len(text) > VALUE_PREVIEW_LENGTH:
        text = text[: VALUE_PREVIEW_LENGTH - 3] + "..."
    return text
