"""Unit tests for descriptors.documents."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from structguard.descriptors.documents import (
    descriptor_from_document,
    descriptor_to_document,
    dump_registry,
    fingerprint,
    load_registry,
    registry_from_document,
    registry_to_document,
)
from structguard.descriptors.model import (
    NULL,
    NUMBER,
    STRING,
    Forward,
    GenericInstantiation,
    IndexKeyKind,
    Literal,
    Reference,
    Rest,
    TypeParameter,
    array,
    intersection,
    obj,
    optional,
    readonly,
    tuple_of,
    union,
)
from structguard.descriptors.registry import TypeRegistry
from structguard.errors import MalformedDescriptor

if TYPE_CHECKING:
    from pathlib import Path

_REGISTRY_YAML = """
version: 1
types:
  User:
    object:
      id: number
      name: string
      email:
        type: string
        optional: true
      tags:
        array: string
      role:
        union:
          - literal: admin
          - literal: member
  Page:
    params: [T]
    body:
      object:
        items:
          array:
            param: T
        next:
          union: [number, null]
  Scores:
    object: {}
    index:
      key: string
      value: number
""".strip()


def test_descriptor_document_round_trip_preserves_structure() -> None:
    shape = obj(
        {
            "id": readonly(NUMBER),
            "nickname": optional(STRING),
            "pair": tuple_of(STRING, Rest(NUMBER)),
            "either": union(Literal("a"), Literal(2), NULL),
            "both": intersection(obj({"a": STRING}), Reference("Other")),
            "page": GenericInstantiation("Page", (STRING,)),
        },
        index=NUMBER,
        index_key="number",
    )

    document = descriptor_to_document(shape)

    assert descriptor_from_document(document) == shape


def test_bare_strings_are_primitives_or_references() -> None:
    assert descriptor_from_document("string") == STRING
    assert descriptor_from_document("User") == Reference("User")
    assert descriptor_from_document(None) == NULL
    assert descriptor_from_document({"param": "T"}) == TypeParameter("T")


def test_integral_float_literals_serialize_as_integers() -> None:
    assert descriptor_to_document(Literal(2.0)) == {"literal": 2}
    assert fingerprint(Literal(2.0)) == fingerprint(Literal(2))
    assert fingerprint(Literal(True)) != fingerprint(Literal(1))


def test_malformed_documents_name_their_location() -> None:
    with pytest.raises(MalformedDescriptor, match=r"\$\.object\.a: expected exactly one of"):
        descriptor_from_document({"object": {"a": {"array": "string", "union": []}}})
    with pytest.raises(MalformedDescriptor, match=r"\$\.tuple: expected a list"):
        descriptor_from_document({"tuple": "string"})
    with pytest.raises(MalformedDescriptor, match="unknown index key kind"):
        descriptor_from_document({"object": {}, "index": {"key": "symbol", "value": "string"}})
    with pytest.raises(MalformedDescriptor, match="expected a boolean"):
        descriptor_from_document({"object": {"a": {"type": "string", "optional": "yes"}}})
    with pytest.raises(MalformedDescriptor, match="expected a string or mapping"):
        descriptor_from_document(42)


def test_forward_nodes_have_no_document_form() -> None:
    with pytest.raises(MalformedDescriptor, match="normalize first"):
        descriptor_to_document(Forward("Node", STRING))


def test_load_registry_reads_yaml_documents(tmp_path: Path) -> None:
    path = tmp_path / "types.yaml"
    path.write_text(_REGISTRY_YAML, encoding="utf-8")

    registry = load_registry(path)

    assert registry.names == ("Page", "Scores", "User")
    user = registry.get("User")
    assert user == obj(
        {
            "id": NUMBER,
            "name": STRING,
            "email": optional(STRING),
            "tags": array(STRING),
            "role": union(Literal("admin"), Literal("member")),
        }
    )
    page = registry.get_generic("Page")
    assert page is not None
    assert page.parameters == ("T",)
    scores = registry.get("Scores")
    assert scores == obj(index=NUMBER, index_key=IndexKeyKind.STRING)


def test_registry_document_round_trip_through_yaml(tmp_path: Path) -> None:
    path = tmp_path / "types.yaml"
    path.write_text(_REGISTRY_YAML, encoding="utf-8")
    registry = load_registry(path)

    dumped = dump_registry(registry)
    reloaded = registry_from_document(yaml.safe_load(dumped))

    assert registry_to_document(reloaded) == registry_to_document(registry)
    assert dumped.endswith("\n")


def test_registry_documents_reject_bad_versions_and_duplicates(tmp_path: Path) -> None:
    with pytest.raises(MalformedDescriptor, match="unsupported document version"):
        registry_from_document({"version": 2, "types": {}})

    existing = TypeRegistry({"User": STRING})
    with pytest.raises(MalformedDescriptor, match="already registered"):
        registry_from_document({"types": {"User": "number"}}, registry=existing)

    broken = tmp_path / "broken.yaml"
    broken.write_text("types: [unclosed", encoding="utf-8")
    with pytest.raises(MalformedDescriptor, match="invalid YAML"):
        load_registry(broken)

    with pytest.raises(MalformedDescriptor, match="unable to read"):
        load_registry(tmp_path / "missing.yaml")
