"""
structguard — type descriptor model.

File: src/structguard/descriptors/model.py

Purpose
- Define the closed set of immutable descriptor nodes that describe a structural type.
- Provide traversal helpers (child enumeration, preorder walk, reference collection).
- Provide small factory helpers for building descriptors by hand.

Functional requirements
- Descriptors are frozen once constructed; structural equality and hashing come
  from the dataclass fields.
- ``Literal`` compares with strict-equality semantics: ``True`` never equals ``1``.
- ``Forward`` is the only mutable node and exists so callers can build raw cyclic
  graphs; the normalizer replaces it with ``Reference`` nodes.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, cast

from structguard.errors import MalformedDescriptor

__all__ = [
    "ANY",
    "BIGINT",
    "BOOLEAN",
    "NEVER",
    "NULL",
    "NUMBER",
    "STRING",
    "UNDEFINED",
    "UNDEFINED_TYPE",
    "UNKNOWN",
    "Array",
    "Descriptor",
    "FieldSpec",
    "Forward",
    "GenericDefinition",
    "GenericInstantiation",
    "IndexKeyKind",
    "IndexSignature",
    "Intersection",
    "Literal",
    "LiteralValue",
    "Object",
    "Primitive",
    "PrimitiveKind",
    "Property",
    "Reference",
    "Rest",
    "Tuple",
    "TypeParameter",
    "Union",
    "array",
    "children",
    "collect_references",
    "generic",
    "intersection",
    "iter_descriptors",
    "literal",
    "literal_category",
    "obj",
    "optional",
    "param",
    "readonly",
    "ref",
    "tuple_of",
    "union",
]

LiteralValue = str | int | float | bool | None


class PrimitiveKind(StrEnum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    UNDEFINED = "undefined"
    BIGINT = "bigint"
    ANY = "any"
    UNKNOWN = "unknown"
    NEVER = "never"


class IndexKeyKind(StrEnum):
    STRING = "string"
    NUMBER = "number"


class _Undefined:
    """Sentinel standing in for an absent value."""

    __slots__ = ()
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Final[_Undefined] = _Undefined()


class Descriptor:
    """Base class of every descriptor node."""

    __slots__ = ()


def _require_descriptor(value: object, where: str) -> Descriptor:
    if not isinstance(value, Descriptor):
        raise MalformedDescriptor(f"{where} must be a Descriptor, got {type(value).__name__}")
    return value


def _require_name(value: object, where: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedDescriptor(f"{where} must be a non-empty string")
    return value


def _descriptor_tuple(values: Iterable[object], where: str) -> tuple[Descriptor, ...]:
    return tuple(
        _require_descriptor(item, f"{where}[{index}]") for index, item in enumerate(values)
    )


def _ordered_unique(members: tuple[Descriptor, ...]) -> tuple[Descriptor, ...]:
    seen: list[Descriptor] = []
    for member in members:
        if member not in seen:
            seen.append(member)
    return tuple(seen)


@dataclass(frozen=True, slots=True)
class Primitive(Descriptor):
    kind: PrimitiveKind

    def __post_init__(self) -> None:
        if not isinstance(self.kind, PrimitiveKind):
            try:
                object.__setattr__(self, "kind", PrimitiveKind(self.kind))
            except ValueError as exc:
                raise MalformedDescriptor(f"unknown primitive kind {self.kind!r}") from exc


def literal_category(value: object) -> str:
    """Return the strict-equality category of a literal value."""

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    raise MalformedDescriptor(f"unsupported literal value of type {type(value).__name__}")


@dataclass(frozen=True, slots=True, eq=False)
class Literal(Descriptor):
    value: LiteralValue

    def __post_init__(self) -> None:
        literal_category(self.value)
        if isinstance(self.value, float) and math.isnan(self.value):
            raise MalformedDescriptor("NaN literal can never match any value")

    @property
    def identity(self) -> tuple[str, LiteralValue]:
        return (literal_category(self.value), self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Literal):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(("literal", *self.identity))


@dataclass(frozen=True, slots=True)
class Array(Descriptor):
    element: Descriptor

    def __post_init__(self) -> None:
        _require_descriptor(self.element, "array element")


@dataclass(frozen=True, slots=True)
class Rest:
    """Variadic tail marker accepted in the final position of ``Tuple.elements``."""

    element: Descriptor

    def __post_init__(self) -> None:
        _require_descriptor(self.element, "rest element")


@dataclass(frozen=True, slots=True)
class Tuple(Descriptor):
    elements: tuple[Descriptor, ...]
    rest: Descriptor | None = None

    def __post_init__(self) -> None:
        items = tuple(self.elements)
        rest = self.rest
        rest_positions = [index for index, item in enumerate(items) if isinstance(item, Rest)]
        if rest_positions:
            if rest_positions != [len(items) - 1] or rest is not None:
                raise MalformedDescriptor("tuple rest element must be in final position")
            rest = cast(Rest, items[-1]).element
            items = items[:-1]
        object.__setattr__(self, "elements", _descriptor_tuple(items, "tuple elements"))
        if rest is not None:
            _require_descriptor(rest, "tuple rest")
        object.__setattr__(self, "rest", rest)

    @property
    def arity(self) -> int:
        return len(self.elements)


@dataclass(frozen=True, slots=True)
class Property:
    name: str
    descriptor: Descriptor
    optional: bool = False
    readonly: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise MalformedDescriptor(
                f"property name must be a string, got {type(self.name).__name__}"
            )
        _require_descriptor(self.descriptor, f"property {self.name!r}")
        object.__setattr__(self, "optional", bool(self.optional))
        object.__setattr__(self, "readonly", bool(self.readonly))


@dataclass(frozen=True, slots=True)
class IndexSignature:
    key_kind: IndexKeyKind
    descriptor: Descriptor

    def __post_init__(self) -> None:
        if not isinstance(self.key_kind, IndexKeyKind):
            try:
                object.__setattr__(self, "key_kind", IndexKeyKind(self.key_kind))
            except ValueError as exc:
                raise MalformedDescriptor(f"unknown index key kind {self.key_kind!r}") from exc
        _require_descriptor(self.descriptor, "index signature")


@dataclass(frozen=True, slots=True)
class Object(Descriptor):
    properties: tuple[Property, ...] = ()
    index_signature: IndexSignature | None = None

    def __post_init__(self) -> None:
        properties = tuple(self.properties)
        seen: set[str] = set()
        for item in properties:
            if not isinstance(item, Property):
                raise MalformedDescriptor(
                    f"object properties must be Property, got {type(item).__name__}"
                )
            if item.name in seen:
                raise MalformedDescriptor(f"duplicate property name {item.name!r}")
            seen.add(item.name)
        object.__setattr__(self, "properties", properties)
        if self.index_signature is not None and not isinstance(
            self.index_signature, IndexSignature
        ):
            raise MalformedDescriptor("index_signature must be an IndexSignature")

    @property
    def property_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.properties)

    def get(self, name: str) -> Property | None:
        for item in self.properties:
            if item.name == name:
                return item
        return None


@dataclass(frozen=True, slots=True)
class Union(Descriptor):
    members: tuple[Descriptor, ...]

    def __post_init__(self) -> None:
        members = _ordered_unique(_descriptor_tuple(self.members, "union members"))
        if not members:
            raise MalformedDescriptor("union requires at least one member")
        object.__setattr__(self, "members", members)


@dataclass(frozen=True, slots=True)
class Intersection(Descriptor):
    members: tuple[Descriptor, ...]

    def __post_init__(self) -> None:
        members = _ordered_unique(_descriptor_tuple(self.members, "intersection members"))
        if not members:
            raise MalformedDescriptor("intersection requires at least one member")
        object.__setattr__(self, "members", members)


@dataclass(frozen=True, slots=True)
class Reference(Descriptor):
    name: str

    def __post_init__(self) -> None:
        _require_name(self.name, "reference name")


@dataclass(frozen=True, slots=True)
class TypeParameter(Descriptor):
    name: str

    def __post_init__(self) -> None:
        _require_name(self.name, "type parameter name")


@dataclass(frozen=True, slots=True)
class GenericInstantiation(Descriptor):
    base: str
    arguments: tuple[Descriptor, ...]

    def __post_init__(self) -> None:
        _require_name(self.base, "generic base")
        object.__setattr__(
            self, "arguments", _descriptor_tuple(self.arguments, f"{self.base} arguments")
        )


@dataclass(frozen=True, slots=True)
class GenericDefinition:
    """Parametrized definition registered under ``name``."""

    name: str
    parameters: tuple[str, ...]
    body: Descriptor

    def __post_init__(self) -> None:
        _require_name(self.name, "generic name")
        parameters = tuple(self.parameters)
        if not parameters:
            raise MalformedDescriptor(f"generic {self.name!r} declares no parameters")
        for parameter in parameters:
            _require_name(parameter, f"{self.name} parameter")
        if len(set(parameters)) != len(parameters):
            raise MalformedDescriptor(f"generic {self.name!r} repeats a parameter name")
        object.__setattr__(self, "parameters", parameters)
        _require_descriptor(self.body, f"generic {self.name!r} body")


class Forward(Descriptor):
    """Placeholder defined after construction so raw graphs can point back at themselves."""

    __slots__ = ("_target", "name")

    def __init__(self, name: str | None = None, target: Descriptor | None = None) -> None:
        if name is not None:
            _require_name(name, "forward name")
        self.name = name
        self._target: Descriptor | None = None
        if target is not None:
            self.define(target)

    def define(self, target: Descriptor) -> Forward:
        if self._target is not None:
            raise MalformedDescriptor(f"forward {self.name or '<anonymous>'} is already defined")
        self._target = _require_descriptor(target, "forward target")
        return self

    @property
    def is_defined(self) -> bool:
        return self._target is not None

    @property
    def target(self) -> Descriptor:
        if self._target is None:
            raise MalformedDescriptor(f"forward {self.name or '<anonymous>'} was never defined")
        return self._target

    def __repr__(self) -> str:
        state = "defined" if self._target is not None else "undefined"
        return f"Forward({self.name!r}, {state})"


def children(descriptor: Descriptor) -> tuple[Descriptor, ...]:
    """Return the direct child descriptors in declaration order."""

    if isinstance(descriptor, Array):
        return (descriptor.element,)
    if isinstance(descriptor, Tuple):
        if descriptor.rest is None:
            return descriptor.elements
        return (*descriptor.elements, descriptor.rest)
    if isinstance(descriptor, Object):
        nested = tuple(item.descriptor for item in descriptor.properties)
        if descriptor.index_signature is not None:
            nested = (*nested, descriptor.index_signature.descriptor)
        return nested
    if isinstance(descriptor, (Union, Intersection)):
        return descriptor.members
    if isinstance(descriptor, GenericInstantiation):
        return descriptor.arguments
    if isinstance(descriptor, Forward):
        return (descriptor.target,) if descriptor.is_defined else ()
    return ()


def iter_descriptors(root: Descriptor) -> Iterator[Descriptor]:
    """Walk ``root`` in preorder, visiting each node instance once."""

    visited: set[int] = set()
    stack: list[Descriptor] = [root]
    while stack:
        node = stack.pop()
        if id(node) in visited:
            continue
        visited.add(id(node))
        yield node
        stack.extend(reversed(children(node)))


def collect_references(root: Descriptor) -> frozenset[str]:
    """Return every reference name mentioned under ``root``."""

    return frozenset(node.name for node in iter_descriptors(root) if isinstance(node, Reference))


STRING: Final[Primitive] = Primitive(PrimitiveKind.STRING)
NUMBER: Final[Primitive] = Primitive(PrimitiveKind.NUMBER)
BOOLEAN: Final[Primitive] = Primitive(PrimitiveKind.BOOLEAN)
NULL: Final[Primitive] = Primitive(PrimitiveKind.NULL)
UNDEFINED_TYPE: Final[Primitive] = Primitive(PrimitiveKind.UNDEFINED)
BIGINT: Final[Primitive] = Primitive(PrimitiveKind.BIGINT)
ANY: Final[Primitive] = Primitive(PrimitiveKind.ANY)
UNKNOWN: Final[Primitive] = Primitive(PrimitiveKind.UNKNOWN)
NEVER: Final[Primitive] = Primitive(PrimitiveKind.NEVER)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Property modifiers used by :func:`obj`."""

    descriptor: Descriptor
    optional: bool = False
    readonly: bool = False


def optional(descriptor: Descriptor, *, readonly: bool = False) -> FieldSpec:
    return FieldSpec(descriptor, optional=True, readonly=readonly)


def readonly(descriptor: Descriptor, *, optional: bool = False) -> FieldSpec:
    return FieldSpec(descriptor, optional=optional, readonly=True)


def obj(
    fields: Mapping[str, Descriptor | FieldSpec] | None = None,
    *,
    index: Descriptor | None = None,
    index_key: IndexKeyKind | str = IndexKeyKind.STRING,
) -> Object:
    """Build an ``Object`` from a name -> descriptor mapping."""

    properties: list[Property] = []
    for name, spec in (fields or {}).items():
        if isinstance(spec, FieldSpec):
            properties.append(
                Property(name, spec.descriptor, optional=spec.optional, readonly=spec.readonly)
            )
        else:
            properties.append(Property(name, spec))
    signature = IndexSignature(IndexKeyKind(index_key), index) if index is not None else None
    return Object(tuple(properties), signature)


def literal(value: LiteralValue) -> Literal:
    return Literal(value)


def array(element: Descriptor) -> Array:
    return Array(element)


def tuple_of(*items: Descriptor | Rest, rest: Descriptor | None = None) -> Tuple:
    return Tuple(tuple(items), rest)  # type: ignore[arg-type]


def union(*members: Descriptor) -> Union:
    return Union(members)


def intersection(*members: Descriptor) -> Intersection:
    return Intersection(members)


def ref(name: str) -> Reference:
    return Reference(name)


def param(name: str) -> TypeParameter:
    return TypeParameter(name)


def generic(base: str, *arguments: Descriptor) -> GenericInstantiation:
    return GenericInstantiation(base, arguments)
