"""Shared fixtures: every test starts from default settings and empty caches."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from structguard.config import reset_settings
from structguard.descriptors.normalizer import clear_normalization_cache
from structguard.engine.compiler import default_compiler


@pytest.fixture(autouse=True)
def _isolated_engine_state() -> Iterator[None]:
    reset_settings()
    clear_normalization_cache()
    default_compiler().clear()
    yield
    reset_settings()
    clear_normalization_cache()
    default_compiler().clear()
