"""Property tests for the validator engine (skipped when hypothesis is missing)."""

from __future__ import annotations

from typing import Any

import pytest

from structguard.config import settings_override
from structguard.descriptors.model import (
    ANY,
    BOOLEAN,
    NULL,
    NUMBER,
    STRING,
    Array,
    Descriptor,
    Literal,
    Object,
    Primitive,
    PrimitiveKind,
    Tuple,
    Union,
    obj,
    optional,
)
from structguard.descriptors.normalizer import normalize
from structguard.engine.compiler import ValidatorCompiler, compile_validator

try:
    from hypothesis import HealthCheck, given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:
    _HYPOTHESIS_AVAILABLE = False
else:
    _HYPOTHESIS_AVAILABLE = True


def _kinds_of(value: object) -> set[PrimitiveKind]:
    kinds = {PrimitiveKind.ANY, PrimitiveKind.UNKNOWN}
    if value is None:
        kinds.add(PrimitiveKind.NULL)
    elif isinstance(value, bool):
        kinds.add(PrimitiveKind.BOOLEAN)
    elif isinstance(value, int):
        kinds.update({PrimitiveKind.NUMBER, PrimitiveKind.BIGINT})
    elif isinstance(value, float):
        kinds.add(PrimitiveKind.NUMBER)
    elif isinstance(value, str):
        kinds.add(PrimitiveKind.STRING)
    return kinds


if _HYPOTHESIS_AVAILABLE:
    _SCALARS = st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-(10**6), max_value=10**6),
        st.floats(allow_nan=False),
        st.text(max_size=6),
    )
    _JSON_VALUES = st.recursive(
        _SCALARS,
        lambda inner: st.one_of(
            st.lists(inner, max_size=3),
            st.dictionaries(st.sampled_from(["a", "b", "c", "d"]), inner, max_size=3),
        ),
        max_leaves=8,
    )
    _LITERALS = st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-5, max_value=5),
        st.text(max_size=3),
    ).map(Literal)
    _LEAVES: Any = st.one_of(st.sampled_from([STRING, NUMBER, BOOLEAN, NULL, ANY]), _LITERALS)

    def _objects(children: Any) -> Any:
        fields = st.dictionaries(
            st.sampled_from(["a", "b", "c", "d"]),
            st.tuples(children, st.booleans()),
            max_size=3,
        )
        return fields.map(
            lambda items: obj(
                {
                    name: optional(descriptor) if is_optional else descriptor
                    for name, (descriptor, is_optional) in items.items()
                }
            )
        )

    _DESCRIPTORS: Any = st.recursive(
        _LEAVES,
        lambda children: st.one_of(
            children.map(Array),
            st.lists(children, max_size=3).map(lambda items: Tuple(tuple(items))),
            _objects(children),
            st.lists(children, min_size=1, max_size=3).map(lambda items: Union(tuple(items))),
        ),
        max_leaves=10,
    )

    def _values_for(descriptor: Descriptor) -> Any:
        if isinstance(descriptor, Literal):
            return st.just(descriptor.value)
        if isinstance(descriptor, Primitive):
            if descriptor.kind is PrimitiveKind.STRING:
                return st.text(max_size=6)
            if descriptor.kind is PrimitiveKind.NUMBER:
                return st.one_of(st.integers(), st.floats(allow_nan=False))
            if descriptor.kind is PrimitiveKind.BOOLEAN:
                return st.booleans()
            if descriptor.kind is PrimitiveKind.NULL:
                return st.none()
            return _SCALARS
        if isinstance(descriptor, Array):
            return st.lists(_values_for(descriptor.element), max_size=3)
        if isinstance(descriptor, Tuple):
            return st.tuples(*(_values_for(item) for item in descriptor.elements)).map(list)
        if isinstance(descriptor, Object):
            required = {
                item.name: _values_for(item.descriptor)
                for item in descriptor.properties
                if not item.optional
            }
            optional_fields = {
                item.name: _values_for(item.descriptor)
                for item in descriptor.properties
                if item.optional
            }
            return st.fixed_dictionaries(required, optional=optional_fields)
        if isinstance(descriptor, Union):
            return st.one_of(*(_values_for(item) for item in descriptor.members))
        raise AssertionError(f"no value strategy for {descriptor!r}")

    @given(kind=st.sampled_from(list(PrimitiveKind)), value=_SCALARS)
    @settings(
        max_examples=200,
        derandomize=True,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_property_primitive_verdict_matches_runtime_kind(
        kind: PrimitiveKind, value: object
    ) -> None:
        validator = compile_validator(Primitive(kind))

        assert validator.check(value) is (kind in _kinds_of(value))

    @given(data=st.data(), descriptor=_DESCRIPTORS)
    @settings(
        max_examples=80,
        derandomize=True,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_property_synthesized_values_conform(data: Any, descriptor: Descriptor) -> None:
        value = data.draw(_values_for(descriptor))
        validator = compile_validator(descriptor)

        assert validator.check(value)
        assert validator.validate(value).passed
        assert validator.check(value, strict=True)

    @given(descriptor=_DESCRIPTORS, values=st.lists(_JSON_VALUES, min_size=1, max_size=5))
    @settings(
        max_examples=60,
        derandomize=True,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_property_recompiling_yields_identical_verdicts(
        descriptor: Descriptor, values: list[object]
    ) -> None:
        graph = normalize(descriptor)
        first = ValidatorCompiler().compile(graph)
        second = ValidatorCompiler().compile(graph)

        assert first is not second
        for value in values:
            assert first.check(value) == second.check(value)
            assert first.validate(value) == second.validate(value)

    @given(descriptor=_DESCRIPTORS, value=_JSON_VALUES)
    @settings(
        max_examples=60,
        derandomize=True,
        deadline=None,
        suppress_health_check=[HealthCheck.function_scoped_fixture],
    )
    def test_property_short_circuit_always_passes(descriptor: Descriptor, value: object) -> None:
        validator = compile_validator(descriptor)

        with settings_override(short_circuit=True):
            assert validator.check(value)
            assert validator.validate(value).passed

else:

    def test_property_primitive_verdict_matches_runtime_kind() -> None:
        pytest.skip("hypothesis is not installed")

    def test_property_synthesized_values_conform() -> None:
        pytest.skip("hypothesis is not installed")

    def test_property_recompiling_yields_identical_verdicts() -> None:
        pytest.skip("hypothesis is not installed")

    def test_property_short_circuit_always_passes() -> None:
        pytest.skip("hypothesis is not installed")
