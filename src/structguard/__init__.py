"""
structguard — runtime structural type validation.

File: src/structguard/__init__.py

Purpose
- Package root. Re-exports the entry points, descriptor helpers, errors, and
  settings API.

Functional requirements
- Must not have side effects at import time (no settings loading, no logging setup).
"""

from structguard.api import (
    assert_equals,
    assert_type,
    create_assert_equals,
    create_assert_type,
    create_equals,
    create_is,
    equals,
    explain,
    is_type,
    validate,
)
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
from structguard.descriptors import (
    ANY,
    BIGINT,
    BOOLEAN,
    NEVER,
    NULL,
    NUMBER,
    STRING,
    UNDEFINED,
    UNDEFINED_TYPE,
    UNKNOWN,
    Forward,
    NormalizedGraph,
    Rest,
    TypeRegistry,
    array,
    generic,
    intersection,
    literal,
    load_registry,
    normalize,
    obj,
    optional,
    param,
    readonly,
    ref,
    tuple_of,
    union,
)
from structguard.engine import CompiledValidator, Failure, FailureKind, Verdict, compile_validator
from structguard.errors import (
    CyclicWithoutReference,
    MalformedDescriptor,
    SettingsLoadError,
    StructguardError,
    TypeGuardError,
    UnboundTypeParameter,
    UnresolvedReference,
    ValueNestingTooDeep,
)

__version__ = "0.1.0"

__all__ = [
    "ANY",
    "BIGINT",
    "BOOLEAN",
    "NEVER",
    "NULL",
    "NUMBER",
    "STRING",
    "UNDEFINED",
    "UNDEFINED_TYPE",
    "UNKNOWN",
    "CompiledValidator",
    "CyclicWithoutReference",
    "Failure",
    "FailureKind",
    "Forward",
    "GuardSettings",
    "MalformedDescriptor",
    "NormalizedGraph",
    "Rest",
    "SettingsLoadError",
    "StructguardError",
    "TypeGuardError",
    "TypeRegistry",
    "UnboundTypeParameter",
    "UnresolvedReference",
    "ValueNestingTooDeep",
    "Verdict",
    "__version__",
    "apply_settings",
    "array",
    "assert_equals",
    "assert_type",
    "compile_validator",
    "configure",
    "create_assert_equals",
    "create_assert_type",
    "create_equals",
    "create_is",
    "equals",
    "explain",
    "generic",
    "get_settings",
    "intersection",
    "is_type",
    "literal",
    "load_registry",
    "load_settings",
    "normalize",
    "obj",
    "optional",
    "param",
    "readonly",
    "ref",
    "reset_settings",
    "set_default_get_error_message",
    "settings_override",
    "tuple_of",
    "union",
    "validate",
]
