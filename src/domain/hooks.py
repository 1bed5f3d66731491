"""
Hook results and uniform invocation of sync/async callables.

Hooks, per-key defaults and views may be plain functions or coroutine
functions. invoke() calls either kind and always returns the final value,
so callers await every capability the same way.

Lifecycle hooks (before_registration, on_registration) report their decision
with a tagged result instead of a sentinel:

    def before_registration(view, context):
        if view["email"].endswith("@example.org"):
            return Replace({"status": "pending"})
        return Keep()
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .exceptions import InternalError, RegistrationError


@dataclass(frozen=True)
class Keep:
    """Hook result: keep the current response body."""


@dataclass(frozen=True)
class Replace:
    """Hook result: replace the response body with ``value``."""

    value: Any


HookResult = Keep | Replace


async def invoke(func: Callable[..., Any], *args: Any) -> Any:
    """Call ``func`` and await its result when it is awaitable."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def call_hook(name: str, func: Callable[..., Any], *args: Any) -> Any:
    """
    Invoke a configured callable, translating unexpected failures.

    RegistrationError subclasses raised by the callable propagate unchanged
    so hooks can reject a submission with a meaningful kind. Anything else
    is a misbehaving hook and becomes InternalError.
    """
    try:
        return await invoke(func, *args)
    except RegistrationError:
        raise
    except Exception as e:
        raise InternalError(f"{name} failed: {e}") from e


def apply_hook_result(name: str, result: Any, current: Any) -> Any:
    """Return the body selected by a lifecycle hook result."""
    if isinstance(result, Replace):
        return result.value
    if isinstance(result, Keep):
        return current
    raise InternalError(f"{name} must return Keep() or Replace(value), got {type(result).__name__}")
