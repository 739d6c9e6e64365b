"""Closed-object checks used by strict (equality) validation."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Final

from structguard.descriptors.model import IndexKeyKind, Object

__all__ = [
    "SharedKeys",
    "is_numeric_key",
    "iter_superfluous_keys",
    "key_matches_index",
]

_NUMERIC_KEY_RE: Final[re.Pattern[str]] = re.compile(
    r"^-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?$"
)
_SPECIAL_NUMERIC_KEYS: Final[frozenset[str]] = frozenset({"NaN", "Infinity", "-Infinity"})


def is_numeric_key(key: object) -> bool:
    """Whether ``key`` would be a number-like property name."""

    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    if isinstance(key, float):
        return not math.isnan(key)
    if isinstance(key, str):
        return key in _SPECIAL_NUMERIC_KEYS or _NUMERIC_KEY_RE.match(key) is not None
    return False


def key_matches_index(key: object, key_kind: IndexKeyKind) -> bool:
    if key_kind is IndexKeyKind.NUMBER:
        return is_numeric_key(key)
    return isinstance(key, str) or is_numeric_key(key)


@dataclass(frozen=True, slots=True)
class SharedKeys:
    """Keys one object declaration accounts for: property names plus index kinds.

    Inside a strict intersection every object member that matched the value
    contributes its ``SharedKeys``; the intersection rejects keys none of them cover.
    """

    names: frozenset[str] = frozenset()
    index_kinds: frozenset[IndexKeyKind] = frozenset()

    @classmethod
    def of(cls, node: Object) -> SharedKeys:
        signature = node.index_signature
        kinds = frozenset({signature.key_kind}) if signature is not None else frozenset()
        return cls(frozenset(node.property_names), kinds)

    def covers(self, key: object) -> bool:
        if key in self.names:
            return True
        return any(key_matches_index(key, kind) for kind in self.index_kinds)


def iter_superfluous_keys(
    value: Mapping[object, object], declarations: Iterable[SharedKeys]
) -> Iterator[object]:
    """Yield keys of ``value`` that no declaration accounts for, in value order."""

    covering = tuple(declarations)
    for key in value:
        if not any(item.covers(key) for item in covering):
            yield key
