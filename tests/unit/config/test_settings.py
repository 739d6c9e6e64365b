"""
structguard — unit tests for process-wide settings

File: tests/unit/config/test_settings.py

Purpose
- Validate settings precedence (overrides > env > file > defaults), coercion,
  and the process-wide holder used by the engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from structguard.config import (
    GuardSettings,
    apply_settings,
    configure,
    get_settings,
    load_settings,
    reset_settings,
    set_default_get_error_message,
    settings_override,
)
from structguard.errors import SettingsLoadError

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_defaults() -> None:
    settings = get_settings()

    assert settings == GuardSettings()
    assert settings.to_dict() == {
        "short_circuit": False,
        "strict_by_default": False,
        "compute_messages": True,
        "max_generic_instantiations": 512,
        "message_hook": False,
    }


def test_loader_precedence_default_file_env_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "structguard.toml"
    _write_config(
        config_path,
        """
[structguard]
max_generic_instantiations = 64
strict_by_default = true
""".strip(),
    )

    file_loaded = load_settings(config_path, environ={})
    env_loaded = load_settings(
        config_path, environ={"STRUCTGUARD_MAX_GENERIC_INSTANTIATIONS": "32"}
    )
    override_loaded = load_settings(
        config_path,
        environ={"STRUCTGUARD_MAX_GENERIC_INSTANTIATIONS": "32"},
        overrides={"max_generic_instantiations": 16},
    )

    assert file_loaded.max_generic_instantiations == 64
    assert file_loaded.strict_by_default is True
    assert env_loaded.max_generic_instantiations == 32
    assert override_loaded.max_generic_instantiations == 16
    assert override_loaded.strict_by_default is True


def test_missing_default_file_falls_back_to_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    assert load_settings(environ={}) == GuardSettings()


def test_env_booleans_are_coerced() -> None:
    loaded = load_settings(
        environ={"STRUCTGUARD_SHORT_CIRCUIT": "Yes", "STRUCTGUARD_COMPUTE_MESSAGES": "off"},
        overrides={},
        config_path=None,
    )

    assert loaded.short_circuit is True
    assert loaded.compute_messages is False


def test_invalid_inputs_raise_actionable_errors(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError, match="STRUCTGUARD_SHORT_CIRCUIT"):
        load_settings(environ={"STRUCTGUARD_SHORT_CIRCUIT": "maybe"})
    with pytest.raises(SettingsLoadError, match="STRUCTGUARD_MAX_GENERIC_INSTANTIATIONS"):
        load_settings(environ={"STRUCTGUARD_MAX_GENERIC_INSTANTIATIONS": "many"})
    with pytest.raises(SettingsLoadError, match="settings file not found"):
        load_settings(tmp_path / "absent.toml", environ={})
    with pytest.raises(SettingsLoadError, match="unknown setting override"):
        load_settings(environ={}, overrides={"verbose": True})

    unknown = tmp_path / "unknown.toml"
    _write_config(unknown, "[structguard]\nverbose = true\n")
    with pytest.raises(SettingsLoadError, match="unknown setting"):
        load_settings(unknown, environ={})

    broken = tmp_path / "broken.toml"
    _write_config(broken, "[structguard\n")
    with pytest.raises(SettingsLoadError, match="invalid TOML"):
        load_settings(broken, environ={})

    with pytest.raises(SettingsLoadError, match="positive integer"):
        load_settings(environ={}, overrides={"max_generic_instantiations": 0})


def test_configure_apply_and_reset() -> None:
    updated = configure(strict_by_default=True)

    assert updated.strict_by_default is True
    assert get_settings() is updated

    previous = apply_settings(GuardSettings(short_circuit=True))
    assert previous is updated
    assert get_settings().short_circuit is True

    assert reset_settings() == GuardSettings()
    assert get_settings() == GuardSettings()

    with pytest.raises(SettingsLoadError, match="unknown setting"):
        configure(verbose=True)
    with pytest.raises(SettingsLoadError, match="GuardSettings instance"):
        apply_settings({"short_circuit": True})  # type: ignore[arg-type]


def test_settings_override_restores_previous_settings() -> None:
    before = get_settings()

    with settings_override(compute_messages=False) as active:
        assert active.compute_messages is False
        assert get_settings() is active

    assert get_settings() is before


def test_message_hook_setter() -> None:
    def hook(failure: object) -> str:
        return "custom"

    set_default_get_error_message(hook)
    assert get_settings().message_hook is hook
    assert get_settings().to_dict()["message_hook"] is True

    set_default_get_error_message()
    assert get_settings().message_hook is None

    with pytest.raises(SettingsLoadError, match="callable"):
        set_default_get_error_message("not callable")  # type: ignore[arg-type]
