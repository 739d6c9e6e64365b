"""
structguard — process-wide settings.

File: src/structguard/config/settings.py

Purpose
- Hold the single process-wide ``GuardSettings`` consumed by the engine.
- Load settings from defaults, a TOML file, ``STRUCTGUARD_`` env vars, and
  explicit overrides.

Functional requirements
- Precedence: overrides > env > file > defaults.
- The message hook is read only when an explanation is rendered; replacing it
  never touches compiled validators.
- Reads and replacements of the active settings are guarded by one lock.
"""

from __future__ import annotations

import os
import threading
import tomllib
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Literal

from structguard.constants import (
    DEFAULT_MAX_GENERIC_INSTANTIATIONS,
    SETTINGS_ENV_PREFIX,
    SETTINGS_FILE_NAME,
    SETTINGS_TABLE,
)
from structguard.errors import SettingsLoadError

if TYPE_CHECKING:
    from structguard.engine.verdict import Failure

MessageHook = Callable[["Failure"], "str | None"]

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})

__all__ = [
    "GuardSettings",
    "MessageHook",
    "apply_settings",
    "configure",
    "get_settings",
    "load_settings",
    "reset_settings",
    "set_default_get_error_message",
    "settings_override",
]


@dataclass(frozen=True, slots=True)
class GuardSettings:
    """Engine-wide defaults.

    ``short_circuit`` makes every entry point report success without validating.
    ``strict_by_default`` turns on superfluous-property rejection for the
    non-equality entry points. ``compute_messages`` controls whether assertion
    failures render a full message. ``message_hook`` replaces the default renderer;
    returning ``None`` from it suppresses message text.
    """

    short_circuit: bool = False
    strict_by_default: bool = False
    compute_messages: bool = True
    max_generic_instantiations: int = DEFAULT_MAX_GENERIC_INSTANTIATIONS
    message_hook: MessageHook | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for name in ("short_circuit", "strict_by_default", "compute_messages"):
            if not isinstance(getattr(self, name), bool):
                raise SettingsLoadError(f"{name} must be a boolean")
        limit = self.max_generic_instantiations
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise SettingsLoadError("max_generic_instantiations must be a positive integer")
        if self.message_hook is not None and not callable(self.message_hook):
            raise SettingsLoadError("message_hook must be callable")

    def to_dict(self) -> dict[str, object]:
        return {
            "short_circuit": self.short_circuit,
            "strict_by_default": self.strict_by_default,
            "compute_messages": self.compute_messages,
            "max_generic_instantiations": self.max_generic_instantiations,
            "message_hook": self.message_hook is not None,
        }


@dataclass(frozen=True, slots=True)
class _Binding:
    name: str
    value_type: Literal["bool", "int"]


_BINDINGS: Final[tuple[_Binding, ...]] = (
    _Binding("short_circuit", "bool"),
    _Binding("strict_by_default", "bool"),
    _Binding("compute_messages", "bool"),
    _Binding("max_generic_instantiations", "int"),
)
_BINDING_BY_NAME: Final[dict[str, _Binding]] = {binding.name: binding for binding in _BINDINGS}

_ACTIVE_LOCK = threading.Lock()
_ACTIVE: GuardSettings = GuardSettings()


def get_settings() -> GuardSettings:
    """Return the active process-wide settings."""
    with _ACTIVE_LOCK:
        return _ACTIVE


def apply_settings(settings: GuardSettings) -> GuardSettings:
    """Replace the active settings and return the previous ones."""
    global _ACTIVE
    if not isinstance(settings, GuardSettings):
        raise SettingsLoadError("apply_settings expects a GuardSettings instance")
    with _ACTIVE_LOCK:
        previous = _ACTIVE
        _ACTIVE = settings
    return previous


def configure(**changes: Any) -> GuardSettings:
    """Update selected fields of the active settings and return the new settings."""
    global _ACTIVE
    known = {item.name for item in fields(GuardSettings)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise SettingsLoadError(f"unknown setting(s): {', '.join(unknown)}")
    with _ACTIVE_LOCK:
        _ACTIVE = replace(_ACTIVE, **changes)
        return _ACTIVE


def reset_settings() -> GuardSettings:
    """Restore defaults (including the default message renderer)."""
    defaults = GuardSettings()
    apply_settings(defaults)
    return defaults


def set_default_get_error_message(hook: MessageHook | None = None) -> None:
    """Install ``hook`` as the process-wide message renderer; ``None`` restores the default."""
    configure(message_hook=hook)


@contextmanager
def settings_override(**changes: Any) -> Iterator[GuardSettings]:
    """Temporarily apply ``changes`` to the active settings."""
    previous = get_settings()
    try:
        yield configure(**changes)
    finally:
        apply_settings(previous)


def load_settings(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> GuardSettings:
    """Load settings with precedence overrides > env > file > defaults.

    The file is TOML; values live under a ``[structguard]`` table. When
    ``config_path`` is omitted, ``structguard.toml`` in the working directory is
    read if present.
    """

    explicit = config_path is not None
    path = (
        Path(config_path).expanduser().resolve()
        if config_path is not None
        else (Path.cwd() / SETTINGS_FILE_NAME).resolve()
    )
    env_map = dict(os.environ if environ is None else environ)

    merged: dict[str, object] = {}
    merged.update(_load_toml_table(path, required=explicit))
    merged.update(_collect_env_overrides(env_map))
    for key, value in (overrides or {}).items():
        if key not in _BINDING_BY_NAME:
            raise SettingsLoadError(f"unknown setting override {key!r}")
        merged[key] = value

    return GuardSettings(**merged)  # type: ignore[arg-type]


def _load_toml_table(path: Path, *, required: bool) -> dict[str, object]:
    if not path.exists():
        if required:
            raise SettingsLoadError(f"settings file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise SettingsLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise SettingsLoadError(f"unable to read settings file {path}: {exc}") from exc

    table = parsed.get(SETTINGS_TABLE, {})
    if not isinstance(table, dict):
        raise SettingsLoadError(f"[{SETTINGS_TABLE}] must be a table: {path}")

    unknown = sorted(set(table) - set(_BINDING_BY_NAME))
    if unknown:
        raise SettingsLoadError(f"unknown setting(s) in {path}: {', '.join(unknown)}")
    return dict(table)


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, object]:
    overrides: dict[str, object] = {}
    for binding in _BINDINGS:
        env_name = f"{SETTINGS_ENV_PREFIX}{binding.name.upper()}"
        raw = environ.get(env_name)
        if raw is None:
            continue
        overrides[binding.name] = _coerce(raw, binding, env_name)
    return overrides


def _coerce(raw: str, binding: _Binding, source: str) -> object:
    text = raw.strip()
    if binding.value_type == "bool":
        lowered = text.lower()
        if lowered in _BOOLEAN_TRUE:
            return True
        if lowered in _BOOLEAN_FALSE:
            return False
        raise SettingsLoadError(f"{source} must be a boolean, got {raw!r}")
    try:
        return int(text)
    except ValueError as exc:
        raise SettingsLoadError(f"{source} must be an integer, got {raw!r}") from exc
