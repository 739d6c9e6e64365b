"""Stable constants shared across descriptor and engine modules."""

from __future__ import annotations

from typing import Final

# Descriptor document format version.
DOCUMENT_SCHEMA_VERSION: Final[int] = 1

# Root name used when rendering failure paths.
ROOT_PATH_NAME: Final[str] = "value"

# Settings defaults.
DEFAULT_MAX_GENERIC_INSTANTIATIONS: Final[int] = 512
SETTINGS_ENV_PREFIX: Final[str] = "STRUCTGUARD_"
SETTINGS_FILE_NAME: Final[str] = "structguard.toml"
SETTINGS_TABLE: Final[str] = "structguard"

# Generic message used when the message hook suppresses details.
SUPPRESSED_MESSAGE: Final[str] = "value does not conform to the expected type"

# Rendering limits for diagnostics.
RENDER_MAX_DEPTH: Final[int] = 3
RENDER_MAX_MEMBERS: Final[int] = 6
VALUE_PREVIEW_LENGTH: Final[int] = 40

# Cache bounds for normalized graphs and compiled validators.
CACHE_MAX_ENTRIES: Final[int] = 1024

# Frames and thread stack granted when a value nests past the interpreter limit.
DEEP_RECURSION_LIMIT: Final[int] = 200_000
DEEP_STACK_BYTES: Final[int] = 256 * 1024 * 1024

__all__ = [
    "CACHE_MAX_ENTRIES",
    "DEEP_RECURSION_LIMIT",
    "DEEP_STACK_BYTES",
    "DEFAULT_MAX_GENERIC_INSTANTIATIONS",
    "DOCUMENT_SCHEMA_VERSION",
    "RENDER_MAX_DEPTH",
    "RENDER_MAX_MEMBERS",
    "ROOT_PATH_NAME",
    "SETTINGS_ENV_PREFIX",
    "SETTINGS_FILE_NAME",
    "SETTINGS_TABLE",
    "SUPPRESSED_MESSAGE",
    "VALUE_PREVIEW_LENGTH",
]
