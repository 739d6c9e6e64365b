"""
structguard — entry points.

File: src/structguard/api.py

Purpose
- Boolean checks, strict-equality checks, and assertions over a descriptor, plus
  factories that pre-bind one descriptor for reuse.

Functional requirements
- Every entry point accepts a ``Descriptor`` or a ``NormalizedGraph`` and an
  optional ``TypeRegistry`` resolving the names it references.
- Equality entry points always enable superfluous-property rejection.
- Construction errors surface when a factory is created, not when it is called.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from structguard.engine.compiler import CompiledValidator, compile_validator

if TYPE_CHECKING:
    from structguard.descriptors.model import Descriptor
    from structguard.descriptors.normalizer import NormalizedGraph
    from structguard.descriptors.registry import TypeRegistry
    from structguard.engine.verdict import Verdict

    TypeSource = Descriptor | NormalizedGraph | CompiledValidator

__all__ = [
    "assert_equals",
    "assert_type",
    "create_assert_equals",
    "create_assert_type",
    "create_equals",
    "create_is",
    "equals",
    "explain",
    "is_type",
    "validate",
]

_T = TypeVar("_T")


def _validator(source: TypeSource, registry: TypeRegistry | None) -> CompiledValidator:
    if isinstance(source, CompiledValidator):
        return source
    return compile_validator(source, registry)


def is_type(source: TypeSource, value: object, *, registry: TypeRegistry | None = None) -> bool:
    """Return whether ``value`` conforms to ``source``."""
    return _validator(source, registry).check(value)


def create_is(
    source: TypeSource, *, registry: TypeRegistry | None = None
) -> Callable[[object], bool]:
    validator = _validator(source, registry)

    def is_conforming(value: object) -> bool:
        return validator.check(value)

    return is_conforming


def equals(source: TypeSource, value: object, *, registry: TypeRegistry | None = None) -> bool:
    """Like :func:`is_type`, but objects may not carry undeclared properties."""
    return _validator(source, registry).check(value, strict=True)


def create_equals(
    source: TypeSource, *, registry: TypeRegistry | None = None
) -> Callable[[object], bool]:
    validator = _validator(source, registry)

    def is_equal(value: object) -> bool:
        return validator.check(value, strict=True)

    return is_equal


def assert_type(source: TypeSource, value: _T, *, registry: TypeRegistry | None = None) -> _T:
    """Return ``value`` if it conforms, otherwise raise ``TypeGuardError``."""
    return _validator(source, registry).assert_conforms(value)


def create_assert_type(
    source: TypeSource, *, registry: TypeRegistry | None = None
) -> Callable[[_T], _T]:
    validator = _validator(source, registry)

    def assert_conforming(value: _T) -> _T:
        return validator.assert_conforms(value)

    return assert_conforming


def assert_equals(source: TypeSource, value: _T, *, registry: TypeRegistry | None = None) -> _T:
    return _validator(source, registry).assert_conforms(value, strict=True)


def create_assert_equals(
    source: TypeSource, *, registry: TypeRegistry | None = None
) -> Callable[[_T], _T]:
    validator = _validator(source, registry)

    def assert_equal(value: _T) -> _T:
        return validator.assert_conforms(value, strict=True)

    return assert_equal


def validate(
    source: TypeSource,
    value: object,
    *,
    registry: TypeRegistry | None = None,
    strict: bool | None = None,
) -> Verdict:
    """Validate in explanation mode and return the full verdict."""
    return _validator(source, registry).validate(value, strict=strict)


def explain(
    source: TypeSource,
    value: object,
    *,
    registry: TypeRegistry | None = None,
    strict: bool | None = None,
) -> str | None:
    """Return the rendered failure message, or ``None`` when ``value`` conforms."""
    return _validator(source, registry).explain(value, strict=strict)
