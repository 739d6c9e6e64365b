"""
structguard — runtime executor.

File: src/structguard/engine/executor.py

Purpose
- Run compiled validators with a fresh ``ValidationContext`` per call.
- Expose the boolean and explanation call shapes and the assertion conversion.

Functional requirements
- Short-circuit mode reports a pass without invoking the procedure.
- Values nested past the interpreter recursion limit are re-validated on a
  worker thread with a larger stack; only nesting beyond that raises.
- The message hook is consulted only when a failure is being rendered.
- Only ``assert_conforms`` raises on non-conforming values; every other call
  returns a value.
"""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, Any, Final, TypeVar

import structlog

from structguard.config.settings import GuardSettings, get_settings
from structguard.constants import DEEP_RECURSION_LIMIT, DEEP_STACK_BYTES, SUPPRESSED_MESSAGE
from structguard.engine.context import ValidationContext
from structguard.engine.verdict import PASS, Failure, Verdict, format_failure, render_path
from structguard.errors import TypeGuardError, ValueNestingTooDeep

if TYPE_CHECKING:
    from structguard.engine.compiler import CompiledValidator

__all__ = ["assert_conforms", "check", "execute", "explain", "render_message"]

_T = TypeVar("_T")

_logger: Any = structlog.get_logger(__name__)

# Recursion limit and thread stack size are process-wide; one deep run at a time.
_DEEP_LOCK: Final = threading.Lock()


def _run(
    validator: CompiledValidator,
    value: object,
    *,
    strict: bool | None,
    explain: bool,
    settings: GuardSettings,
) -> Failure | None:
    if settings.short_circuit:
        return None
    strict = settings.strict_by_default if strict is None else strict
    try:
        return validator(value, ValidationContext(strict=strict, explain=explain))
    except RecursionError:
        _logger.debug("deep_validation_retry", recursion_limit=DEEP_RECURSION_LIMIT)
    return _run_deep(validator, value, ValidationContext(strict=strict, explain=explain))


def _run_deep(
    validator: CompiledValidator, value: object, ctx: ValidationContext
) -> Failure | None:
    """Re-run ``validator`` on a worker thread with a large stack and recursion limit.

    Procedures recurse once per nesting level of ``value``; this path only runs
    for values that exhausted the interpreter's default limit.
    """

    outcome: Failure | None = None
    error: Exception | None = None

    def runner() -> None:
        nonlocal outcome, error
        try:
            outcome = validator(value, ctx)
        except Exception as exc:
            error = exc

    with _DEEP_LOCK:
        previous_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(previous_limit, DEEP_RECURSION_LIMIT))
        try:
            previous_stack = threading.stack_size(DEEP_STACK_BYTES)
            try:
                thread = threading.Thread(
                    target=runner, name="structguard-deep-validation", daemon=False
                )
                thread.start()
            finally:
                threading.stack_size(previous_stack)
            thread.join()
        finally:
            sys.setrecursionlimit(previous_limit)

    if error is not None:
        if isinstance(error, RecursionError):
            raise ValueNestingTooDeep(
                f"value nests deeper than {DEEP_RECURSION_LIMIT} validation frames"
            ) from error
        raise error
    return outcome


def execute(
    validator: CompiledValidator,
    value: object,
    *,
    strict: bool | None = None,
    explain: bool = True,
) -> Verdict:
    """Validate ``value`` and return a verdict; explanation mode by default."""

    failure = _run(validator, value, strict=strict, explain=explain, settings=get_settings())
    return PASS if failure is None else Verdict(failure)


def check(validator: CompiledValidator, value: object, *, strict: bool | None = None) -> bool:
    """Boolean-only validation; stops at the first failure without recording paths."""

    return _run(validator, value, strict=strict, explain=False, settings=get_settings()) is None


def render_message(failure: Failure, settings: GuardSettings | None = None) -> str | None:
    """Render ``failure`` through the active message hook.

    Returns ``None`` when message computation is disabled or the hook suppresses it.
    """

    active = settings if settings is not None else get_settings()
    if active.message_hook is not None:
        return active.message_hook(failure)
    if not active.compute_messages:
        return None
    return format_failure(failure)


def explain(
    validator: CompiledValidator, value: object, *, strict: bool | None = None
) -> str | None:
    """Return a rendered failure message, or ``None`` when ``value`` conforms."""

    settings = get_settings()
    failure = _run(validator, value, strict=strict, explain=True, settings=settings)
    if failure is None:
        return None
    message = render_message(failure, settings)
    return message if message is not None else SUPPRESSED_MESSAGE


def assert_conforms(validator: CompiledValidator, value: _T, *, strict: bool | None = None) -> _T:
    """Return ``value`` unchanged or raise ``TypeGuardError`` describing the failure."""

    settings = get_settings()
    wants_message = settings.compute_messages or settings.message_hook is not None
    failure = _run(validator, value, strict=strict, explain=wants_message, settings=settings)
    if failure is None:
        return value

    message = render_message(failure, settings) if wants_message else None
    _logger.debug(
        "assertion_failed",
        kind=failure.kind.value,
        path=render_path(failure.innermost.path) if wants_message else None,
        message_suppressed=message is None,
    )
    raise TypeGuardError(message if message is not None else SUPPRESSED_MESSAGE, failure)
