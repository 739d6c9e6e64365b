"""
structguard — descriptor documents.

File: src/structguard/descriptors/documents.py

Purpose
- Read and write descriptors and registries as plain YAML/JSON documents so an
  extraction step in another process can hand types over without importing
  Python descriptor classes.
- Fingerprint descriptors through their canonical document form.

Document grammar
- Primitive kinds are bare strings (``string``, ``number``, ...); any other bare
  string is a reference to a registered name.
- ``{literal: v}``, ``{array: d}``, ``{tuple: [d, ...], rest: d}``,
  ``{object: {name: d | {type: d, optional: bool, readonly: bool}}, index: {key: string|number, value: d}}``,
  ``{union: [d, ...]}``, ``{intersection: [d, ...]}``, ``{ref: Name}``,
  ``{generic: Name, args: [d, ...]}``, ``{param: T}``.
- Registry documents: ``{version: 1, types: {Name: d | {params: [T, ...], body: d}}}``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, cast

import yaml

from structguard.constants import DOCUMENT_SCHEMA_VERSION
from structguard.descriptors.model import (
    Array,
    Descriptor,
    Forward,
    GenericDefinition,
    GenericInstantiation,
    IndexKeyKind,
    IndexSignature,
    Intersection,
    Literal,
    Object,
    Primitive,
    PrimitiveKind,
    Property,
    Reference,
    Tuple,
    TypeParameter,
    Union,
)
from structguard.descriptors.registry import TypeRegistry
from structguard.errors import MalformedDescriptor
from structguard.utils.hashing import fingerprint_payload

__all__ = [
    "descriptor_from_document",
    "descriptor_to_document",
    "dump_registry",
    "fingerprint",
    "load_registry",
    "registry_from_document",
    "registry_to_document",
]

_PRIMITIVE_NAMES: Final[frozenset[str]] = frozenset(kind.value for kind in PrimitiveKind)
_DESCRIPTOR_KEYS: Final[frozenset[str]] = frozenset(
    {
        "literal",
        "array",
        "tuple",
        "object",
        "union",
        "intersection",
        "ref",
        "generic",
        "param",
    }
)
_PROPERTY_KEYS: Final[frozenset[str]] = frozenset({"type", "optional", "readonly"})


def descriptor_to_document(descriptor: Descriptor) -> object:
    """Return the document form of ``descriptor``."""

    if isinstance(descriptor, Primitive):
        return descriptor.kind.value
    if isinstance(descriptor, Literal):
        value = descriptor.value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return {"literal": value}
    if isinstance(descriptor, Array):
        return {"array": descriptor_to_document(descriptor.element)}
    if isinstance(descriptor, Tuple):
        payload: dict[str, object] = {
            "tuple": [descriptor_to_document(item) for item in descriptor.elements]
        }
        if descriptor.rest is not None:
            payload["rest"] = descriptor_to_document(descriptor.rest)
        return payload
    if isinstance(descriptor, Object):
        fields: dict[str, object] = {}
        for item in descriptor.properties:
            encoded = descriptor_to_document(item.descriptor)
            if item.optional or item.readonly:
                long_form: dict[str, object] = {"type": encoded}
                if item.optional:
                    long_form["optional"] = True
                if item.readonly:
                    long_form["readonly"] = True
                encoded = long_form
            fields[item.name] = encoded
        payload = {"object": fields}
        if descriptor.index_signature is not None:
            payload["index"] = {
                "key": descriptor.index_signature.key_kind.value,
                "value": descriptor_to_document(descriptor.index_signature.descriptor),
            }
        return payload
    if isinstance(descriptor, Union):
        return {"union": [descriptor_to_document(item) for item in descriptor.members]}
    if isinstance(descriptor, Intersection):
        return {"intersection": [descriptor_to_document(item) for item in descriptor.members]}
    if isinstance(descriptor, Reference):
        return {"ref": descriptor.name}
    if isinstance(descriptor, GenericInstantiation):
        return {
            "generic": descriptor.base,
            "args": [descriptor_to_document(item) for item in descriptor.arguments],
        }
    if isinstance(descriptor, TypeParameter):
        return {"param": descriptor.name}
    if isinstance(descriptor, Forward):
        raise MalformedDescriptor(
            f"forward {descriptor.name or '<anonymous>'} has no document form; normalize first"
        )
    raise MalformedDescriptor(f"unsupported descriptor type {type(descriptor).__name__}")


def descriptor_from_document(document: object, *, path: str = "$") -> Descriptor:
    """Parse one descriptor from its document form."""

    if isinstance(document, str):
        if document in _PRIMITIVE_NAMES:
            return Primitive(PrimitiveKind(document))
        return Reference(document)
    if document is None:
        return Primitive(PrimitiveKind.NULL)
    if not isinstance(document, Mapping):
        raise MalformedDescriptor(
            f"{path}: expected a string or mapping, got {type(document).__name__}"
        )

    keys = set(document) & _DESCRIPTOR_KEYS
    if len(keys) != 1:
        raise MalformedDescriptor(
            f"{path}: expected exactly one of {sorted(_DESCRIPTOR_KEYS)}, got {sorted(map(str, document))}"
        )
    (kind,) = keys
    body = document[kind]
    location = f"{path}.{kind}"

    if kind == "literal":
        return Literal(body)
    if kind == "array":
        return Array(descriptor_from_document(body, path=location))
    if kind == "tuple":
        elements = _parse_list(body, location)
        rest_doc = document.get("rest")
        rest = (
            descriptor_from_document(rest_doc, path=f"{path}.rest") if rest_doc is not None else None
        )
        return Tuple(elements, rest)
    if kind == "object":
        return _parse_object(document, body, path)
    if kind == "union":
        return Union(_parse_list(body, location))
    if kind == "intersection":
        return Intersection(_parse_list(body, location))
    if kind == "ref":
        return Reference(_parse_name(body, location))
    if kind == "generic":
        arguments = _parse_list(document.get("args", []), f"{path}.args")
        return GenericInstantiation(_parse_name(body, location), arguments)
    return TypeParameter(_parse_name(body, location))


def registry_from_document(
    document: object, *, source: str = "<document>", registry: TypeRegistry | None = None
) -> TypeRegistry:
    """Build (or extend) a registry from a registry document."""

    if not isinstance(document, Mapping):
        raise MalformedDescriptor(f"{source}: registry document must be a mapping")
    version = document.get("version", DOCUMENT_SCHEMA_VERSION)
    if version != DOCUMENT_SCHEMA_VERSION:
        raise MalformedDescriptor(
            f"{source}: unsupported document version {version!r}; expected {DOCUMENT_SCHEMA_VERSION}"
        )
    types = document.get("types", {})
    if not isinstance(types, Mapping):
        raise MalformedDescriptor(f"{source}: 'types' must be a mapping")

    target = registry if registry is not None else TypeRegistry()
    for name, entry in types.items():
        location = f"{source}:types.{name}"
        if not isinstance(name, str):
            raise MalformedDescriptor(f"{location}: type names must be strings")
        if isinstance(entry, Mapping) and "params" in entry:
            parameters = entry["params"]
            if not isinstance(parameters, Sequence) or isinstance(parameters, str):
                raise MalformedDescriptor(f"{location}.params: expected a list of names")
            target.add_generic(
                GenericDefinition(
                    name,
                    tuple(_parse_name(item, f"{location}.params") for item in parameters),
                    descriptor_from_document(entry.get("body"), path=f"{location}.body"),
                )
            )
        else:
            target.define(name, descriptor_from_document(entry, path=location))
    return target


def registry_to_document(registry: TypeRegistry) -> dict[str, Any]:
    types: dict[str, object] = {}
    definitions = registry.definitions
    generics = registry.generics
    for name in registry.names:
        if name in definitions:
            types[name] = descriptor_to_document(definitions[name])
        else:
            definition = generics[name]
            types[name] = {
                "params": list(definition.parameters),
                "body": descriptor_to_document(definition.body),
            }
    return {"version": DOCUMENT_SCHEMA_VERSION, "types": types}


def load_registry(path: str | Path, *, registry: TypeRegistry | None = None) -> TypeRegistry:
    """Load a YAML (or JSON) registry document from ``path``."""

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise MalformedDescriptor(f"{source}: invalid YAML ({exc})") from exc
    except OSError as exc:
        raise MalformedDescriptor(f"{source}: unable to read descriptor document ({exc})") from exc
    return registry_from_document(loaded or {}, source=str(source), registry=registry)


def dump_registry(registry: TypeRegistry) -> str:
    rendered = yaml.safe_dump(
        registry_to_document(registry),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=120,
    )
    if not rendered.endswith("\n"):
        rendered = rendered + "\n"
    return rendered


@lru_cache(maxsize=4096)
def fingerprint(descriptor: Descriptor) -> str:
    """Stable SHA-256 fingerprint of a descriptor's canonical document form."""

    return fingerprint_payload(descriptor_to_document(descriptor))


def _parse_list(value: object, path: str) -> tuple[Descriptor, ...]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise MalformedDescriptor(f"{path}: expected a list, got {type(value).__name__}")
    return tuple(
        descriptor_from_document(item, path=f"{path}[{index}]") for index, item in enumerate(value)
    )


def _parse_name(value: object, path: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedDescriptor(f"{path}: expected a non-empty name")
    return value


def _parse_object(document: Mapping[str, object], body: object, path: str) -> Object:
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise MalformedDescriptor(f"{path}.object: expected a mapping of properties")

    properties: list[Property] = []
    for name, entry in body.items():
        location = f"{path}.object.{name}"
        if not isinstance(name, str):
            raise MalformedDescriptor(f"{location}: property names must be strings")
        if isinstance(entry, Mapping) and "type" in entry:
            unknown = set(entry) - _PROPERTY_KEYS
            if unknown:
                raise MalformedDescriptor(f"{location}: unknown property keys {sorted(unknown)}")
            properties.append(
                Property(
                    name,
                    descriptor_from_document(entry["type"], path=f"{location}.type"),
                    optional=_parse_flag(entry.get("optional", False), f"{location}.optional"),
                    readonly=_parse_flag(entry.get("readonly", False), f"{location}.readonly"),
                )
            )
        else:
            properties.append(Property(name, descriptor_from_document(entry, path=location)))

    signature: IndexSignature | None = None
    index = document.get("index")
    if index is not None:
        if not isinstance(index, Mapping) or "value" not in index:
            raise MalformedDescriptor(f"{path}.index: expected {{key, value}}")
        signature = IndexSignature(
            cast("IndexKeyKind", index.get("key", IndexKeyKind.STRING.value)),
            descriptor_from_document(index["value"], path=f"{path}.index.value"),
        )
    return Object(tuple(properties), signature)


def _parse_flag(value: object, path: str) -> bool:
    if not isinstance(value, bool):
        raise MalformedDescriptor(f"{path}: expected a boolean")
    return value
