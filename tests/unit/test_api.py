"""Unit tests for the package-level entry points."""

from __future__ import annotations

import pytest

import structguard
from structguard import (
    NULL,
    NUMBER,
    STRING,
    Forward,
    Rest,
    TypeGuardError,
    TypeRegistry,
    UnresolvedReference,
    array,
    assert_equals,
    assert_type,
    configure,
    create_assert_equals,
    create_assert_type,
    create_equals,
    create_is,
    equals,
    explain,
    intersection,
    is_type,
    normalize,
    obj,
    optional,
    ref,
    settings_override,
    tuple_of,
    union,
    validate,
)
from structguard.engine.verdict import FailureKind


def test_is_type_and_create_is() -> None:
    user = obj({"id": NUMBER, "name": STRING, "email": optional(STRING)})
    is_user = create_is(user)

    assert is_type(user, {"id": 1, "name": "a"})
    assert is_type(user, {"id": 1, "name": "a", "extra": True})
    assert not is_type(user, {"id": "1", "name": "a"})
    assert is_user({"id": 1, "name": "a", "email": "a@example.com"})
    assert not is_user(None)


def test_equals_rejects_superfluous_properties() -> None:
    shape = obj({"x": STRING})

    assert not equals(shape, {})
    assert equals(shape, {"x": "a"})
    assert not equals(shape, {"x": "a", "y": "b"})

    missing = validate(shape, {}, strict=True)
    extra = validate(shape, {"x": "a", "y": "b"}, strict=True)
    assert missing.failure is not None and missing.failure.kind is FailureKind.MISSING_PROPERTY
    assert extra.failure is not None
    assert extra.failure.kind is FailureKind.SUPERFLUOUS_PROPERTY
    assert extra.failure.key == "y"
    assert explain(shape, {"x": "a", "y": "b"}, strict=True) == 'value: superfluous property "y"'


def test_equals_is_strict_regardless_of_process_default() -> None:
    shape = obj({"x": STRING})
    is_equal = create_equals(shape)

    configure(strict_by_default=False)
    assert not is_equal({"x": "a", "y": "b"})
    assert is_type(shape, {"x": "a", "y": "b"})

    configure(strict_by_default=True)
    assert not is_type(shape, {"x": "a", "y": "b"})


def test_assert_type_returns_original_value() -> None:
    shape = obj({"items": array(NUMBER)})
    value = {"items": [1, 2, 3], "note": "kept"}

    assert assert_type(shape, value) is value
    assert create_assert_type(shape)(value) is value
    with pytest.raises(TypeGuardError, match=r"value\.items\[1\]: expected number, got string"):
        assert_type(shape, {"items": [1, "2"]})


def test_assert_equals_and_factory() -> None:
    shape = obj({"x": STRING})
    assert_shape = create_assert_equals(shape)

    assert assert_equals(shape, {"x": "a"}) == {"x": "a"}
    assert assert_shape({"x": "a"}) == {"x": "a"}
    with pytest.raises(TypeGuardError, match='superfluous property "y"'):
        assert_shape({"x": "a", "y": 1})
    with pytest.raises(TypeGuardError) as error:
        assert_equals(shape, {})
    assert isinstance(error.value, ValueError)
    assert error.value.failure is not None
    assert error.value.failure.kind is FailureKind.MISSING_PROPERTY


def test_union_diagnostics_point_at_closest_branch() -> None:
    shape = union(obj({"a": STRING}), obj({"a": NUMBER, "b": STRING}))

    message = explain(shape, {"a": 1})

    assert message == (
        "value: no union member matched (closest: member 2 of 2); "
        'value: missing required property "b"'
    )


def test_tuple_arity_through_entry_points() -> None:
    pair = tuple_of(STRING, NUMBER)

    assert is_type(pair, ["a", 1])
    assert explain(pair, ["a"]) == "value: expected 2 elements, got 1"
    assert explain(pair, ["a", 1, True]) == "value: expected 2 elements, got 3"
    assert is_type(tuple_of(STRING, NUMBER, Rest(NUMBER)), ["a", 1, 2, 3])


def test_recursive_descriptor_with_cyclic_data() -> None:
    node = Forward("Node")
    node.define(obj({"next": union(node, NULL)}))

    acyclic = {"next": {"next": None}}
    cyclic: dict[str, object] = {}
    cyclic["next"] = cyclic

    assert is_type(node, acyclic)
    assert is_type(node, cyclic)
    assert equals(node, cyclic)
    assert assert_type(node, cyclic) is cyclic


def test_boolean_entry_points_accept_deep_recursive_values() -> None:
    node = Forward("Node")
    node.define(obj({"value": NUMBER, "next": union(NULL, node)}))
    chain: dict[str, object] = {"value": 0, "next": None}
    for index in range(1, 1500):
        chain = {"value": index, "next": chain}

    assert is_type(node, chain)
    assert equals(node, chain)
    assert assert_equals(node, chain) is chain
    assert not equals(node, {"value": 1500, "next": chain, "extra": True})


def test_equals_on_intersection_with_union_rejects_keys_of_other_branches() -> None:
    shape = intersection(obj({"a": NUMBER}), union(obj({"b": NUMBER}), obj({"c": NUMBER})))

    assert equals(shape, {"a": 1, "b": 1})
    assert not equals(shape, {"a": 1, "b": 1, "c": 1})
    assert is_type(shape, {"a": 1, "b": 1, "c": 1})


def test_short_circuit_mode_passes_everything() -> None:
    shape = obj({"x": STRING})
    is_shape = create_is(shape)

    with settings_override(short_circuit=True):
        assert is_type(shape, 42)
        assert equals(shape, {"x": "a", "y": 1})
        assert is_shape(None)
        assert assert_type(shape, None) is None
        assert validate(shape, []).passed

    assert not is_shape(None)


def test_registry_bound_entry_points() -> None:
    registry = TypeRegistry()
    registry.define("Tag", obj({"label": STRING}))
    tags = array(ref("Tag"))

    assert is_type(tags, [{"label": "a"}], registry=registry)
    assert not is_type(tags, [{"label": 1}], registry=registry)
    with pytest.raises(UnresolvedReference):
        is_type(tags, [])
    with pytest.raises(UnresolvedReference):
        create_is(tags)


def test_entry_points_accept_normalized_graphs_and_validators() -> None:
    graph = normalize(obj({"x": STRING}))
    validator = structguard.compile_validator(graph)

    assert is_type(graph, {"x": "a"})
    assert is_type(validator, {"x": "a"})
    assert not equals(validator, {"x": "a", "y": 1})


def test_package_exports_version() -> None:
    assert structguard.__version__ == "0.1.0"
    assert "is_type" in structguard.__all__
