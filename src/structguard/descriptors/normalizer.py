"""
structguard — descriptor normalizer.

File: src/structguard/descriptors/normalizer.py

Purpose
- Turn a raw descriptor (plus an optional registry) into a closed, deduplicated
  ``NormalizedGraph`` that the compiler can lower without further lookups.

Functional requirements
- Every ``Forward`` becomes a registered definition reached through ``Reference``.
- Structurally identical subtrees share one instance.
- ``GenericInstantiation`` is substituted into its base body, memoized on
  ``(base, arguments)`` so recursive generics close over a ``Reference``.
- Unknown names raise ``UnresolvedReference``; free parameters raise
  ``UnboundTypeParameter``; cycles that never descend into a value raise
  ``CyclicWithoutReference``.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog

from structguard.config.settings import get_settings
from structguard.constants import CACHE_MAX_ENTRIES
from structguard.descriptors.documents import descriptor_to_document
from structguard.descriptors.model import (
    Array,
    Descriptor,
    Forward,
    GenericInstantiation,
    IndexSignature,
    Intersection,
    Literal,
    Object,
    Primitive,
    Property,
    Reference,
    Tuple,
    TypeParameter,
    Union,
)
from structguard.descriptors.registry import TypeRegistry
from structguard.descriptors.render import render
from structguard.errors import (
    CyclicWithoutReference,
    MalformedDescriptor,
    UnboundTypeParameter,
    UnresolvedReference,
)
from structguard.utils.hashing import fingerprint_payload

__all__ = ["NormalizedGraph", "Normalizer", "clear_normalization_cache", "normalize"]

_ANONYMOUS_NAME = "anonymous"


@dataclass(frozen=True, slots=True)
class NormalizedGraph:
    """Closed descriptor graph: a root plus every definition it reaches."""

    root: Descriptor
    definitions: tuple[tuple[str, Descriptor], ...] = ()
    _index: dict[str, Descriptor] = field(init=False, repr=False, compare=False)
    _fingerprint: list[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.definitions, key=lambda item: item[0]))
        object.__setattr__(self, "definitions", ordered)
        object.__setattr__(self, "_index", dict(ordered))
        object.__setattr__(self, "_fingerprint", [])

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.definitions)

    def resolve(self, name: str) -> Descriptor:
        try:
            return self._index[name]
        except KeyError:
            raise UnresolvedReference(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._index

    @property
    def fingerprint(self) -> str:
        if not self._fingerprint:
            payload = {
                "root": descriptor_to_document(self.root),
                "definitions": {
                    name: descriptor_to_document(body) for name, body in self.definitions
                },
            }
            self._fingerprint.append(fingerprint_payload(payload))
        return self._fingerprint[0]


class Normalizer:
    """Normalize raw descriptors against one registry."""

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        *,
        max_generic_instantiations: int | None = None,
        logger: Any | None = None,
    ) -> None:
        if max_generic_instantiations is None:
            max_generic_instantiations = get_settings().max_generic_instantiations
        if max_generic_instantiations <= 0:
            raise ValueError("max_generic_instantiations must be > 0")
        self._registry = registry if registry is not None else TypeRegistry()
        self._max_instantiations = max_generic_instantiations
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    def normalize(self, root: Descriptor) -> NormalizedGraph:
        if isinstance(root, NormalizedGraph):
            return root
        if not isinstance(root, Descriptor):
            raise MalformedDescriptor(f"expected a Descriptor, got {type(root).__name__}")

        run = _NormalizationRun(self._registry, self._max_instantiations)
        normalized_root = run.normalize(root, {})
        run.assert_guarded_cycles()
        graph = NormalizedGraph(normalized_root, tuple(run.definitions.items()))
        self._logger.debug(
            "descriptor_normalized",
            root=render(normalized_root),
            definitions=len(graph.definitions),
            instantiations=run.instantiation_count,
            interned=len(run.interned),
        )
        return graph


class _NormalizationRun:
    """Mutable state for one ``Normalizer.normalize`` call."""

    def __init__(self, registry: TypeRegistry, max_instantiations: int) -> None:
        self.registry = registry
        self.max_instantiations = max_instantiations
        self.definitions: dict[str, Descriptor] = {}
        self.interned: dict[Descriptor, Descriptor] = {}
        self.instantiation_count = 0
        self._pending: set[str] = set()
        self._used_names: set[str] = set()
        self._forward_names: dict[int, str] = {}
        self._forwards: list[Forward] = []
        self._generic_memo: dict[tuple[str, tuple[Descriptor, ...]], str] = {}
        self._active: set[int] = set()

    def normalize(self, node: Descriptor, env: Mapping[str, Descriptor]) -> Descriptor:
        if isinstance(node, Forward):
            return self._intern(Reference(self._forward(node)))
        if id(node) in self._active:
            raise CyclicWithoutReference(())
        self._active.add(id(node))
        try:
            rebuilt = self._rebuild(node, env)
        finally:
            self._active.discard(id(node))
        return self._intern(rebuilt)

    def assert_guarded_cycles(self) -> None:
        """Reject definitions that reach themselves without entering a value."""
        links = {name: _unguarded_references(body) for name, body in self.definitions.items()}
        cycles: dict[tuple[str, ...], None] = {}
        for start in sorted(links):
            cycle = _shortest_unguarded_cycle(start, links)
            if cycle is not None:
                cycles[_rotate_to_smallest(cycle)] = None
        if cycles:
            ordered = sorted(cycles)
            kinds = [
                tuple(links[source][target] for source, target in zip(path, path[1:]))
                for path in ordered
            ]
            raise CyclicWithoutReference(ordered, kinds)

    def _rebuild(self, node: Descriptor, env: Mapping[str, Descriptor]) -> Descriptor:
        if isinstance(node, (Primitive, Literal)):
            return node
        if isinstance(node, Array):
            return Array(self.normalize(node.element, env))
        if isinstance(node, Tuple):
            rest = self.normalize(node.rest, env) if node.rest is not None else None
            return Tuple(tuple(self.normalize(item, env) for item in node.elements), rest)
        if isinstance(node, Object):
            properties = tuple(
                Property(
                    item.name,
                    self.normalize(item.descriptor, env),
                    optional=item.optional,
                    readonly=item.readonly,
                )
                for item in node.properties
            )
            signature = node.index_signature
            if signature is not None:
                signature = IndexSignature(
                    signature.key_kind, self.normalize(signature.descriptor, env)
                )
            return Object(properties, signature)
        if isinstance(node, Union):
            return _flatten(Union, [self.normalize(item, env) for item in node.members])
        if isinstance(node, Intersection):
            return _flatten(Intersection, [self.normalize(item, env) for item in node.members])
        if isinstance(node, Reference):
            self._resolve_name(node.name)
            return node
        if isinstance(node, TypeParameter):
            bound = env.get(node.name)
            if bound is None:
                raise UnboundTypeParameter(node.name)
            return bound
        if isinstance(node, GenericInstantiation):
            arguments = tuple(self.normalize(item, env) for item in node.arguments)
            return Reference(self._instantiate(node.base, arguments))
        raise MalformedDescriptor(f"unsupported descriptor type {type(node).__name__}")

    def _intern(self, node: Descriptor) -> Descriptor:
        return self.interned.setdefault(node, node)

    def _allocate_name(self, base: str) -> str:
        candidate = base
        counter = 1
        while candidate in self._used_names or candidate in self.registry:
            counter += 1
            candidate = f"{base}#{counter}"
        self._used_names.add(candidate)
        return candidate

    def _define(self, name: str, body: Descriptor, env: Mapping[str, Descriptor]) -> None:
        self._pending.add(name)
        try:
            self.definitions[name] = self.normalize(body, env)
        finally:
            self._pending.discard(name)

    def _resolve_name(self, name: str) -> None:
        if name in self.definitions or name in self._pending:
            return
        generic_definition = self.registry.get_generic(name)
        if generic_definition is not None:
            raise UnboundTypeParameter(
                generic_definition.parameters[0],
                context=f"reference to generic {name!r} without type arguments",
            )
        target = self.registry.get(name)
        if target is None:
            raise UnresolvedReference(name)
        self._used_names.add(name)
        self._define(name, target, {})

    def _forward(self, node: Forward) -> str:
        name = self._forward_names.get(id(node))
        if name is not None:
            return name
        name = self._allocate_name(node.name or _ANONYMOUS_NAME)
        self._forward_names[id(node)] = name
        self._forwards.append(node)
        self._define(name, node.target, {})
        return name

    def _instantiate(self, base: str, arguments: tuple[Descriptor, ...]) -> str:
        definition = self.registry.get_generic(base)
        if definition is None:
            if base in self.registry:
                raise MalformedDescriptor(f"{base!r} is not generic but was given type arguments")
            raise UnresolvedReference(base)
        if len(arguments) != len(definition.parameters):
            raise MalformedDescriptor(
                f"generic {base!r} expects {len(definition.parameters)} type argument(s), "
                f"got {len(arguments)}"
            )

        key = (base, arguments)
        memoized = self._generic_memo.get(key)
        if memoized is not None:
            return memoized

        self.instantiation_count += 1
        if self.instantiation_count > self.max_instantiations:
            raise MalformedDescriptor(
                f"generic expansion of {base!r} does not converge after "
                f"{self.max_instantiations} instantiations"
            )
        rendered = ", ".join(render(item) for item in arguments)
        name = self._allocate_name(f"{base}<{rendered}>")
        self._generic_memo[key] = name
        self._define(name, definition.body, dict(zip(definition.parameters, arguments)))
        return name


def _flatten(kind: type[Union] | type[Intersection], members: list[Descriptor]) -> Descriptor:
    flat: list[Descriptor] = []
    for member in members:
        if isinstance(member, kind):
            flat.extend(member.members)
        else:
            flat.append(member)
    combined = kind(tuple(flat))
    if len(combined.members) == 1:
        return combined.members[0]
    return combined


def _unguarded_references(body: Descriptor) -> dict[str, str]:
    """Map each reference reachable from ``body`` without entering a value to its combinator.

    A reference at the top of a body is an ``alias``; below that it is labelled by the
    innermost ``union`` or ``intersection`` holding it.
    """

    found: dict[str, str] = {}
    stack: list[tuple[Descriptor, str]] = [(body, "alias")]
    while stack:
        node, via = stack.pop()
        if isinstance(node, Reference):
            found.setdefault(node.name, via)
        elif isinstance(node, Union):
            stack.extend((member, "union") for member in reversed(node.members))
        elif isinstance(node, Intersection):
            stack.extend((member, "intersection") for member in reversed(node.members))
    return found


def _shortest_unguarded_cycle(
    start: str, links: Mapping[str, Mapping[str, str]]
) -> tuple[str, ...] | None:
    """Breadth-first search for the shortest unguarded path from ``start`` back to itself."""

    parents: dict[str, str] = {}
    queue = deque([start])
    while queue:
        name = queue.popleft()
        for target in sorted(links.get(name, {})):
            if target == start:
                path = [name]
                while path[-1] != start:
                    path.append(parents[path[-1]])
                path.reverse()
                return (*path, start)
            if target not in parents:
                parents[target] = name
                queue.append(target)
    return None


def _rotate_to_smallest(cycle: tuple[str, ...]) -> tuple[str, ...]:
    core = cycle[:-1]
    pivot = core.index(min(core))
    rotated = core[pivot:] + core[:pivot]
    return (*rotated, rotated[0])


@lru_cache(maxsize=CACHE_MAX_ENTRIES)
def _normalize_closed(root: Descriptor, max_generic_instantiations: int) -> NormalizedGraph:
    return Normalizer(max_generic_instantiations=max_generic_instantiations).normalize(root)


def normalize(
    root: Descriptor | NormalizedGraph,
    registry: TypeRegistry | None = None,
    *,
    max_generic_instantiations: int | None = None,
) -> NormalizedGraph:
    """Normalize ``root``; registry-free descriptors are cached by structure."""

    if isinstance(root, NormalizedGraph):
        return root
    if registry is None:
        if max_generic_instantiations is None:
            max_generic_instantiations = get_settings().max_generic_instantiations
        if not isinstance(root, Descriptor):
            raise MalformedDescriptor(f"expected a Descriptor, got {type(root).__name__}")
        return _normalize_closed(root, max_generic_instantiations)
    return Normalizer(registry, max_generic_instantiations=max_generic_instantiations).normalize(
        root
    )


def clear_normalization_cache() -> None:
    _normalize_closed.cache_clear()
