"""
structguard engine package public API.

Purpose
- Compile normalized descriptor graphs into validators and run them.
"""

from structguard.engine.compiler import (
    CompiledValidator,
    Procedure,
    ValidatorCompiler,
    compile_validator,
    default_compiler,
)
from structguard.engine.context import ValidationContext
from structguard.engine.executor import assert_conforms, check, execute, explain, render_message
from structguard.engine.strictness import SharedKeys, key_matches_index
from structguard.engine.verdict import (
    PASS,
    Failure,
    FailureKind,
    PathSegment,
    Verdict,
    format_failure,
    render_path,
)

__all__ = [
    "PASS",
    "CompiledValidator",
    "Failure",
    "FailureKind",
    "PathSegment",
    "Procedure",
    "SharedKeys",
    "ValidationContext",
    "ValidatorCompiler",
    "Verdict",
    "assert_conforms",
    "check",
    "compile_validator",
    "default_compiler",
    "execute",
    "explain",
    "format_failure",
    "key_matches_index",
    "render_message",
    "render_path",
]
