"""
structguard config package public API.

Purpose
- Export the process-wide settings holder, loaders, and the message hook setter.
"""

from structguard.config.settings import (
    GuardSettings,
    MessageHook,
    apply_settings,
    configure,
    get_settings,
    load_settings,
    reset_settings,
    set_default_get_error_message,
    settings_override,
)

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
