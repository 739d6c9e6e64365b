"""Named descriptor definitions forming one reference resolution scope."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping

from structguard.descriptors.model import Descriptor, GenericDefinition, Reference
from structguard.errors import MalformedDescriptor

__all__ = ["TypeRegistry"]


class TypeRegistry:
    """Registry of named descriptors and generic definitions.

    Names share one namespace: a name is either a plain definition or a generic.
    """

    __slots__ = ("_definitions", "_generics")

    def __init__(
        self,
        definitions: Mapping[str, Descriptor] | None = None,
        generics: Iterable[GenericDefinition] | None = None,
    ) -> None:
        self._definitions: dict[str, Descriptor] = {}
        self._generics: dict[str, GenericDefinition] = {}
        for name, descriptor in (definitions or {}).items():
            self.define(name, descriptor)
        for definition in generics or ():
            self.add_generic(definition)

    def define(self, name: str, descriptor: Descriptor) -> Reference:
        """Register ``descriptor`` under ``name`` and return a reference to it."""
        reference = Reference(name)
        if not isinstance(descriptor, Descriptor):
            raise MalformedDescriptor(f"definition {name!r} must be a Descriptor")
        self._assert_free(name)
        self._definitions[name] = descriptor
        return reference

    def define_generic(
        self, name: str, parameters: Iterable[str], body: Descriptor
    ) -> GenericDefinition:
        definition = GenericDefinition(name, tuple(parameters), body)
        self.add_generic(definition)
        return definition

    def add_generic(self, definition: GenericDefinition) -> None:
        if not isinstance(definition, GenericDefinition):
            raise MalformedDescriptor("generic definitions must be GenericDefinition instances")
        self._assert_free(definition.name)
        self._generics[definition.name] = definition

    def get(self, name: str) -> Descriptor | None:
        return self._definitions.get(name)

    def get_generic(self, name: str) -> GenericDefinition | None:
        return self._generics.get(name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted((*self._definitions, *self._generics)))

    @property
    def definitions(self) -> dict[str, Descriptor]:
        return dict(self._definitions)

    @property
    def generics(self) -> dict[str, GenericDefinition]:
        return dict(self._generics)

    def copy(self) -> TypeRegistry:
        return TypeRegistry(self._definitions, self._generics.values())

    def __contains__(self, name: object) -> bool:
        return name in self._definitions or name in self._generics

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __len__(self) -> int:
        return len(self._definitions) + len(self._generics)

    def __repr__(self) -> str:
        return f"TypeRegistry(names={list(self.names)!r})"

    def _assert_free(self, name: str) -> None:
        if name in self:
            raise MalformedDescriptor(f"name {name!r} is already registered")
