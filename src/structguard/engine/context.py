"""Per-call validation state: modes, path stack, and recursion guard."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from structguard.descriptors.render import describe_value, preview_value
from structguard.engine.verdict import Failure, FailureKind, PathSegment

if TYPE_CHECKING:
    from structguard.engine.strictness import SharedKeys

__all__ = ["ValidationContext"]

_NO_VALUE: Final = object()

# Boolean-mode failures carry no path, so one instance per kind is enough.
_BARE_FAILURES: Final[dict[FailureKind, Failure]] = {kind: Failure(kind) for kind in FailureKind}


class ValidationContext:
    """State owned by exactly one top-level validation call."""

    __slots__ = ("explain", "guard", "path", "progress", "shared_keys", "strict")

    def __init__(self, *, strict: bool = False, explain: bool = False) -> None:
        self.strict = strict
        self.explain = explain
        self.path: list[PathSegment] = []
        self.guard: set[tuple[str, int]] = set()
        self.progress = 0
        # id(mapping) -> keys claimed by the members of a strict intersection
        self.shared_keys: dict[int, list[SharedKeys]] = {}

    def fail(
        self,
        kind: FailureKind,
        value: object = _NO_VALUE,
        *,
        expected: str | None = None,
        actual: str | None = None,
        preview: bool = False,
        key: object = None,
        cause: Failure | None = None,
        branch: int | None = None,
        branch_count: int | None = None,
    ) -> Failure:
        """Build a failure at the current path; cheap shared instances in boolean mode."""
        if not self.explain:
            return _BARE_FAILURES[kind]
        if actual is None and value is not _NO_VALUE:
            actual = preview_value(value) if preview else describe_value(value)
        return Failure(
            kind,
            tuple(self.path),
            expected=expected,
            actual=actual,
            key=key,
            cause=cause,
            branch=branch,
            branch_count=branch_count,
        )

    def enter(self, name: str, value: object) -> bool:
        """Record that ``value`` is being checked against definition ``name``.

        Returns ``False`` when the pair is already active, i.e. the value graph is cyclic.
        """
        marker = (name, id(value))
        if marker in self.guard:
            return False
        self.guard.add(marker)
        return True

    def leave(self, name: str, value: object) -> None:
        self.guard.discard((name, id(value)))
