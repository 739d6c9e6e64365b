"""Verdicts, failure values, and their human readable rendering."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from structguard.constants import ROOT_PATH_NAME
from structguard.descriptors.render import render_key

__all__ = [
    "PASS",
    "Failure",
    "FailureKind",
    "PathSegment",
    "Verdict",
    "format_failure",
    "render_path",
]

PathSegment = str | int


class FailureKind(StrEnum):
    TYPE_MISMATCH = "type_mismatch"
    MISSING_PROPERTY = "missing_property"
    SUPERFLUOUS_PROPERTY = "superfluous_property"
    ARITY_MISMATCH = "arity_mismatch"
    NO_UNION_MEMBER_MATCHED = "no_union_member_matched"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True)
class Failure:
    """Why and where a value failed to conform.

    ``path`` locates the offending value (or, for property failures, the object
    holding ``key``). Union failures keep the closest branch failure in ``cause``.
    """

    kind: FailureKind
    path: tuple[PathSegment, ...] = ()
    expected: str | None = None
    actual: str | None = None
    key: object = None
    cause: Failure | None = None
    branch: int | None = None
    branch_count: int | None = None

    @property
    def depth(self) -> int:
        innermost = self.innermost
        return len(innermost.path) + (1 if innermost.key is not None else 0)

    @property
    def innermost(self) -> Failure:
        current = self
        while current.cause is not None:
            current = current.cause
        return current

    @property
    def reason(self) -> str:
        kind = self.kind
        if kind is FailureKind.TYPE_MISMATCH:
            return f"expected {self.expected}, got {self.actual}"
        if kind is FailureKind.MISSING_PROPERTY:
            return f"missing required property {_quote(self.key)}"
        if kind is FailureKind.SUPERFLUOUS_PROPERTY:
            return f"superfluous property {_quote(self.key)}"
        if kind is FailureKind.ARITY_MISMATCH:
            return f"expected {self.expected} elements, got {self.actual}"
        if kind is FailureKind.NO_UNION_MEMBER_MATCHED:
            if self.branch is not None and self.branch_count is not None:
                return (
                    f"no union member matched (closest: member {self.branch + 1} "
                    f"of {self.branch_count})"
                )
            return "no union member matched"
        return "value is unreachable (never)"

    def to_dict(self) -> dict[str, object]:
        chain: list[Failure] = [self]
        current = self.cause
        while current is not None:
            chain.append(current)
            current = current.cause
        payload = chain[-1]._own_dict(None)
        for failure in reversed(chain[:-1]):
            payload = failure._own_dict(payload)
        return payload

    def _own_dict(self, cause: dict[str, object] | None) -> dict[str, object]:
        payload: dict[str, object] = {
            "kind": self.kind.value,
            "path": list(self.path),
            "reason": self.reason,
        }
        if self.key is not None:
            payload["key"] = self.key
        if self.expected is not None:
            payload["expected"] = self.expected
        if self.actual is not None:
            payload["actual"] = self.actual
        if cause is not None:
            payload["cause"] = cause
            payload["branch"] = self.branch
        return payload


@dataclass(frozen=True, slots=True)
class Verdict:
    failure: Failure | None = None

    @property
    def passed(self) -> bool:
        return self.failure is None

    def __bool__(self) -> bool:
        return self.failure is None


PASS: Final[Verdict] = Verdict()


def _quote(key: object) -> str:
    if isinstance(key, str):
        return json.dumps(key, ensure_ascii=False)
    return repr(key)


def render_path(path: tuple[PathSegment, ...], *, root: str = ROOT_PATH_NAME) -> str:
    """Render ``("items", 2, "name")`` as ``value.items[2].name``."""

    parts = [root]
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            parts.append(f"[{segment}]")
            continue
        rendered = render_key(segment)
        if rendered.startswith('"'):
            parts.append(f"[{rendered}]")
        else:
            parts.append(f".{rendered}")
    return "".join(parts)


def format_failure(failure: Failure, *, root: str = ROOT_PATH_NAME) -> str:
    """Render ``failure`` as ``<path>: <reason>``, following union causes."""

    parts: list[str] = []
    current: Failure | None = failure
    while current is not None:
        parts.append(f"{render_path(current.path, root=root)}: {current.reason}")
        current = current.cause
    return "; ".join(parts)
