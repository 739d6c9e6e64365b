"""
structguard — validator compiler.

File: src/structguard/engine/compiler.py

Purpose
- Lower a ``NormalizedGraph`` into a tree of closures, one per distinct descriptor
  node, wrapped in a ``CompiledValidator``.

Functional requirements
- Procedures are memoized by node identity; the normalizer interns nodes, so
  structurally identical subtrees compile once.
- Named definitions live in an arena and references call into it lazily, so
  recursive types compile to a self-call instead of infinite expansion.
- Run-time failures are returned as ``Failure`` values, never raised.
- The compile cache is shared across threads and bounded (least recently used
  graphs are evicted); concurrent compiles of one graph are allowed and the
  first stored validator wins.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Final, TypeVar

import structlog

from structguard.constants import CACHE_MAX_ENTRIES
from structguard.descriptors.model import (
    UNDEFINED,
    Array,
    Descriptor,
    Intersection,
    Literal,
    Object,
    Primitive,
    PrimitiveKind,
    Reference,
    Tuple,
    Union,
)
from structguard.descriptors.normalizer import NormalizedGraph, normalize
from structguard.descriptors.render import render, render_literal
from structguard.engine import executor
from structguard.engine.strictness import SharedKeys, iter_superfluous_keys, key_matches_index
from structguard.engine.verdict import FailureKind
from structguard.errors import MalformedDescriptor

if TYPE_CHECKING:
    from structguard.descriptors.registry import TypeRegistry
    from structguard.engine.context import ValidationContext
    from structguard.engine.verdict import Failure, Verdict

__all__ = [
    "CompiledValidator",
    "Procedure",
    "ValidatorCompiler",
    "compile_validator",
    "default_compiler",
    "is_container",
    "is_sequence",
]

Procedure = Callable[[Any, "ValidationContext"], "Failure | None"]

_T = TypeVar("_T")

_NON_SEQUENCE_TYPES: Final = (str, bytes, bytearray)


def is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, _NON_SEQUENCE_TYPES)


def is_container(value: object) -> bool:
    return isinstance(value, Mapping) or is_sequence(value)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_bigint(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_PRIMITIVE_CHECKS: Final[dict[PrimitiveKind, Callable[[object], bool]]] = {
    PrimitiveKind.STRING: lambda value: isinstance(value, str),
    PrimitiveKind.NUMBER: _is_number,
    PrimitiveKind.BOOLEAN: lambda value: isinstance(value, bool),
    PrimitiveKind.NULL: lambda value: value is None,
    PrimitiveKind.UNDEFINED: lambda value: value is UNDEFINED,
    PrimitiveKind.BIGINT: _is_bigint,
}


def _value_category(value: object) -> str | None:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return None


def _pass(value: object, ctx: ValidationContext) -> Failure | None:
    return None


class CompiledValidator:
    """A reusable validation procedure bound to one normalized graph."""

    __slots__ = ("graph", "procedure")

    def __init__(self, graph: NormalizedGraph, procedure: Procedure) -> None:
        self.graph = graph
        self.procedure = procedure

    def __call__(self, value: object, ctx: ValidationContext) -> Failure | None:
        return self.procedure(value, ctx)

    def check(self, value: object, *, strict: bool | None = None) -> bool:
        return executor.check(self, value, strict=strict)

    def validate(self, value: object, *, strict: bool | None = None) -> Verdict:
        return executor.execute(self, value, strict=strict)

    def explain(self, value: object, *, strict: bool | None = None) -> str | None:
        return executor.explain(self, value, strict=strict)

    def assert_conforms(self, value: _T, *, strict: bool | None = None) -> _T:
        return executor.assert_conforms(self, value, strict=strict)

    def __repr__(self) -> str:
        return f"CompiledValidator({render(self.graph.root)})"


class _Compilation:
    """Mutable state for lowering one graph."""

    def __init__(self, graph: NormalizedGraph) -> None:
        self.graph = graph
        self.arena: dict[str, Procedure] = {}
        self.memo: dict[int, Procedure] = {}
        self._compiling: set[str] = set()

    def lower(self, node: Descriptor) -> Procedure:
        cached = self.memo.get(id(node))
        if cached is not None:
            return cached
        procedure = self._lower_node(node)
        self.memo[id(node)] = procedure
        return procedure

    def _lower_node(self, node: Descriptor) -> Procedure:
        if isinstance(node, Primitive):
            return self._primitive(node)
        if isinstance(node, Literal):
            return self._literal(node)
        if isinstance(node, Array):
            return self._array(node)
        if isinstance(node, Tuple):
            return self._tuple(node)
        if isinstance(node, Object):
            return self._object(node)
        if isinstance(node, Union):
            return self._union(node)
        if isinstance(node, Intersection):
            return self._intersection(node)
        if isinstance(node, Reference):
            return self._reference(node)
        raise MalformedDescriptor(
            f"cannot compile {type(node).__name__}; normalize the descriptor first"
        )

    def _primitive(self, node: Primitive) -> Procedure:
        kind = node.kind
        if kind in (PrimitiveKind.ANY, PrimitiveKind.UNKNOWN):
            return _pass
        if kind is PrimitiveKind.NEVER:

            def check_never(value: object, ctx: ValidationContext) -> Failure | None:
                return ctx.fail(FailureKind.UNREACHABLE, value, expected="never")

            return check_never

        accepts = _PRIMITIVE_CHECKS[kind]
        expected = kind.value

        def check_primitive(value: object, ctx: ValidationContext) -> Failure | None:
            if accepts(value):
                return None
            return ctx.fail(FailureKind.TYPE_MISMATCH, value, expected=expected)

        return check_primitive

    def _literal(self, node: Literal) -> Procedure:
        category, expected_value = node.identity
        expected = render_literal(expected_value)

        def check_literal(value: object, ctx: ValidationContext) -> Failure | None:
            if _value_category(value) == category and value == expected_value:
                return None
            return ctx.fail(FailureKind.TYPE_MISMATCH, value, expected=expected, preview=True)

        return check_literal

    def _array(self, node: Array) -> Procedure:
        element = self.lower(node.element)
        expected = render(node)

        def check_array(value: Any, ctx: ValidationContext) -> Failure | None:
            if not is_sequence(value):
                return ctx.fail(FailureKind.TYPE_MISMATCH, value, expected=expected)
            path = ctx.path
            for index, item in enumerate(value):
                path.append(index)
                failure = element(item, ctx)
                path.pop()
                if failure is not None:
                    return failure
                ctx.progress += 1
            return None

        return check_array

    def _tuple(self, node: Tuple) -> Procedure:
        positions = tuple(self.lower(item) for item in node.elements)
        rest = self.lower(node.rest) if node.rest is not None else None
        arity = len(positions)
        expected = render(node)
        expected_arity = f"at least {arity}" if rest is not None else str(arity)

        def check_tuple(value: Any, ctx: ValidationContext) -> Failure | None:
            if not is_sequence(value):
                return ctx.fail(FailureKind.TYPE_MISMATCH, value, expected=expected)
            length = len(value)
            if length < arity or (rest is None and length != arity):
                return ctx.fail(
                    FailureKind.ARITY_MISMATCH, expected=expected_arity, actual=str(length)
                )
            path = ctx.path
            for index, (check_item, item) in enumerate(zip(positions, value)):
                path.append(index)
                failure = check_item(item, ctx)
                path.pop()
                if failure is not None:
                    return failure
                ctx.progress += 1
            if rest is None:
                return None
            for index in range(arity, length):
                path.append(index)
                failure = rest(value[index], ctx)
                path.pop()
                if failure is not None:
                    return failure
                ctx.progress += 1
            return None

        return check_tuple

    def _object(self, node: Object) -> Procedure:
        properties = tuple(
            (item.name, self.lower(item.descriptor), item.optional) for item in node.properties
        )
        declared = frozenset(node.property_names)
        signature = node.index_signature
        index_kind = signature.key_kind if signature is not None else None
        index_check = self.lower(signature.descriptor) if signature is not None else None
        own_keys = (SharedKeys.of(node),)
        expected = render(node)

        def check_object(value: Any, ctx: ValidationContext) -> Failure | None:
            if not isinstance(value, Mapping):
                return ctx.fail(FailureKind.TYPE_MISMATCH, value, expected=expected)
            path = ctx.path
            for name, check_property, is_optional in properties:
                if name not in value:
                    if is_optional:
                        continue
                    return ctx.fail(FailureKind.MISSING_PROPERTY, key=name)
                item = value[name]
                if is_optional and item is UNDEFINED:
                    continue
                path.append(name)
                failure = check_property(item, ctx)
                path.pop()
                if failure is not None:
                    return failure
                ctx.progress += 1

            if index_check is not None and index_kind is not None:
                for key, item in value.items():
                    if key in declared or not key_matches_index(key, index_kind):
                        continue
                    path.append(key)
                    failure = index_check(item, ctx)
                    path.pop()
                    if failure is not None:
                        return failure
                    ctx.progress += 1

            if ctx.strict:
                claimed = ctx.shared_keys.get(id(value)) if ctx.shared_keys else None
                if claimed is not None:
                    # the enclosing intersection checks superfluous keys once all members ran
                    claimed.extend(own_keys)
                    return None
                for key in iter_superfluous_keys(value, own_keys):
                    return ctx.fail(FailureKind.SUPERFLUOUS_PROPERTY, key=key)
            return None

        return check_object

    def _union(self, node: Union) -> Procedure:
        members = tuple(self.lower(item) for item in node.members)
        count = len(members)
        expected = render(node)

        def check_union(value: object, ctx: ValidationContext) -> Failure | None:
            claimed = ctx.shared_keys.get(id(value)) if ctx.shared_keys else None
            claimed_mark = len(claimed) if claimed is not None else 0

            if not ctx.explain:
                for member in members:
                    if member(value, ctx) is None:
                        return None
                    if claimed is not None:
                        del claimed[claimed_mark:]
                return ctx.fail(FailureKind.NO_UNION_MEMBER_MATCHED)

            best: Failure | None = None
            best_branch = 0
            best_score = (-1, -1)
            start = ctx.progress
            for branch, member in enumerate(members):
                failure = member(value, ctx)
                if failure is None:
                    return None
                score = (failure.depth, ctx.progress - start)
                if score > best_score:
                    best, best_branch, best_score = failure, branch, score
                ctx.progress = start
                if claimed is not None:
                    del claimed[claimed_mark:]
            return ctx.fail(
                FailureKind.NO_UNION_MEMBER_MATCHED,
                value,
                expected=expected,
                cause=best,
                branch=best_branch,
                branch_count=count,
            )

        return check_union

    def _intersection(self, node: Intersection) -> Procedure:
        members = tuple(self.lower(item) for item in node.members)

        def check_members(value: object, ctx: ValidationContext) -> Failure | None:
            for member in members:
                failure = member(value, ctx)
                if failure is not None:
                    return failure
            return None

        def check_intersection(value: object, ctx: ValidationContext) -> Failure | None:
            marker = id(value)
            if not (ctx.strict and isinstance(value, Mapping)) or marker in ctx.shared_keys:
                return check_members(value, ctx)

            claimed: list[SharedKeys] = []
            ctx.shared_keys[marker] = claimed
            try:
                failure = check_members(value, ctx)
            finally:
                del ctx.shared_keys[marker]
            if failure is not None or not claimed:
                return failure
            for key in iter_superfluous_keys(value, claimed):
                return ctx.fail(FailureKind.SUPERFLUOUS_PROPERTY, key=key)
            return None

        return check_intersection

    def _reference(self, node: Reference) -> Procedure:
        name = node.name
        if name not in self.arena and name not in self._compiling:
            self._compiling.add(name)
            try:
                self.arena[name] = self.lower(self.graph.resolve(name))
            finally:
                self._compiling.discard(name)
        arena = self.arena

        def check_reference(value: object, ctx: ValidationContext) -> Failure | None:
            target = arena[name]
            if not is_container(value):
                return target(value, ctx)
            if not ctx.enter(name, value):
                return None
            try:
                return target(value, ctx)
            finally:
                ctx.leave(name, value)

        return check_reference


class ValidatorCompiler:
    """Compile normalized graphs, caching one validator per distinct graph.

    The cache keeps the ``max_entries`` most recently used validators.
    """

    def __init__(
        self, *, max_entries: int = CACHE_MAX_ENTRIES, logger: Any | None = None
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._cache: OrderedDict[NormalizedGraph, CompiledValidator] = OrderedDict()
        self._max_entries = max_entries
        self._lock = threading.Lock()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def compile(self, graph: NormalizedGraph) -> CompiledValidator:
        if not isinstance(graph, NormalizedGraph):
            raise MalformedDescriptor(f"expected a NormalizedGraph, got {type(graph).__name__}")
        with self._lock:
            cached = self._cache.get(graph)
            if cached is not None:
                self._cache.move_to_end(graph)
        if cached is not None:
            self._logger.debug("validator_cache_hit", root=render(graph.root))
            return cached

        compilation = _Compilation(graph)
        validator = CompiledValidator(graph, compilation.lower(graph.root))
        with self._lock:
            stored = self._cache.setdefault(graph, validator)
            self._cache.move_to_end(graph)
            while len(self._cache) > self._max_entries:
                self._cache.popitem(last=False)
        self._logger.debug(
            "validator_compiled",
            root=render(graph.root),
            definitions=len(graph.definitions),
            procedures=len(compilation.memo),
            fingerprint=graph.fingerprint,
        )
        return stored

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


_DEFAULT_COMPILER = ValidatorCompiler()


def default_compiler() -> ValidatorCompiler:
    """Return the process-wide compiler used by the entry points."""
    return _DEFAULT_COMPILER


def compile_validator(
    descriptor: Descriptor | NormalizedGraph,
    registry: TypeRegistry | None = None,
    *,
    compiler: ValidatorCompiler | None = None,
) -> CompiledValidator:
    """Normalize ``descriptor`` against ``registry`` and compile it."""

    graph = normalize(descriptor, registry)
    return (compiler if compiler is not None else _DEFAULT_COMPILER).compile(graph)


