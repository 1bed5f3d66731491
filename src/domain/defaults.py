"""
Default value resolution for submission records.

The configured source takes one of three shapes:

- a mapping of field -> static value
- a function (record) -> mapping, sync or async
- a mapping whose values are functions (record) -> value, sync or async

The shapes compose: a function may return a mapping of per-key functions.
Only keys absent from the record are resolved; values supplied by the user
are never overwritten and their resolvers are never called.
"""

import asyncio
import copy
from collections.abc import Callable, Mapping
from typing import Any

from .exceptions import InternalError
from .hooks import call_hook

DefaultSource = Mapping[str, Any] | Callable[[dict[str, Any]], Any] | None


async def resolve_defaults(source: DefaultSource, record: dict[str, Any]) -> None:
    """
    Fill keys missing from ``record`` using ``source`` (mutates in place).

    Per-key resolutions run concurrently; every assignment is applied once
    all of them have completed. If one resolver fails, the others are
    cancelled and that failure is raised unchanged.

    Raises:
        InternalError: If the source does not resolve to a mapping, or a
            resolver fails with a non-domain exception
    """
    if source is None:
        return

    if callable(source):
        defaults = await call_hook("default_values", source, record)
    else:
        defaults = source

    if not isinstance(defaults, Mapping):
        raise InternalError(
            f"default_values must resolve to a mapping, got {type(defaults).__name__}"
        )

    missing = [key for key in defaults if key not in record]
    if not missing:
        return

    try:
        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(_resolve_value(key, defaults[key], record))
                for key in missing
            ]
    except ExceptionGroup as failures:
        # Siblings are cancelled by the group; surface the first failure as-is
        raise failures.exceptions[0] from None
    record.update(zip(missing, (task.result() for task in tasks)))


async def _resolve_value(key: str, value: Any, record: dict[str, Any]) -> Any:
    if callable(value):
        return await call_hook(f"default value for '{key}'", value, record)
    # Static defaults may be mutable (e.g. {}); never share them across requests
    return copy.deepcopy(value)
