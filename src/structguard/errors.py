"""Error taxonomy for descriptor construction and assertion failures."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from structguard.engine.verdict import Failure

__all__ = [
    "CyclicWithoutReference",
    "MalformedDescriptor",
    "SettingsLoadError",
    "StructguardError",
    "TypeGuardError",
    "UnboundTypeParameter",
    "UnresolvedReference",
    "ValueNestingTooDeep",
]


class StructguardError(Exception):
    """Base class for every error raised by this package."""


class MalformedDescriptor(StructguardError, ValueError):
    """Raised when a descriptor graph cannot be compiled safely."""


class UnresolvedReference(MalformedDescriptor):
    """Raised when a reference names no registered definition."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"reference {name!r} does not resolve to a registered definition")


class UnboundTypeParameter(MalformedDescriptor):
    """Raised when a type parameter is still free after substitution."""

    def __init__(self, name: str, *, context: str | None = None) -> None:
        self.name = name
        where = f" in {context}" if context else ""
        super().__init__(f"type parameter {name!r} is unbound{where}")


class CyclicWithoutReference(MalformedDescriptor):
    """Raised when a descriptor cycle never descends into a value.

    ``cycles`` holds closed name paths such as ``("A", "B", "A")``; ``links``
    names the combinator (``union``, ``intersection`` or ``alias``) behind each step.
    """

    cycles: tuple[tuple[str, ...], ...]
    links: tuple[tuple[str, ...], ...]

    def __init__(
        self,
        cycles: Iterable[Sequence[str]],
        links: Iterable[Sequence[str]] | None = None,
    ) -> None:
        normalized: tuple[tuple[str, ...], ...] = tuple(tuple(path) for path in cycles)
        self.cycles = normalized
        self.links = tuple(tuple(kinds) for kinds in links) if links is not None else ()

        if not normalized:
            message = "descriptor graph contains a cycle that is not mediated by a reference"
        else:
            rendered = [
                _render_cycle(path, self.links[index] if index < len(self.links) else ())
                for index, path in enumerate(normalized[:3])
            ]
            suffix = "..." if len(normalized) > 3 else ""
            preview = ", ".join(rendered)
            message = f"descriptor graph contains unguarded cycle(s): {preview}{suffix}"
        super().__init__(message)


def _render_cycle(path: Sequence[str], kinds: Sequence[str]) -> str:
    if len(kinds) != len(path) - 1:
        return " -> ".join(path)
    parts = [path[0]]
    for kind, name in zip(kinds, path[1:]):
        parts.append(f" -[{kind}]-> {name}")
    return "".join(parts)


class ValueNestingTooDeep(StructguardError):
    """Raised when a value nests deeper than validation can follow."""


class SettingsLoadError(StructguardError, ValueError):
    """Raised when settings cannot be loaded or coerced."""


class TypeGuardError(StructguardError, ValueError):
    """Raised by assertion entry points when a value does not conform."""

    def __init__(self, message: str, failure: Failure | None = None) -> None:
        self.failure = failure
        super().__init__(message)
