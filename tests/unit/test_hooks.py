"""
Unit tests for hook results and uniform invocation.
"""

import pytest

from src.domain.exceptions import Conflict, InternalError
from src.domain.hooks import Keep, Replace, apply_hook_result, call_hook, invoke


class TestInvoke:
    """invoke() awaits sync and async callables alike."""

    @pytest.mark.asyncio
    async def test_sync_function(self) -> None:
        assert await invoke(lambda a, b: a + b, 1, 2) == 3

    @pytest.mark.asyncio
    async def test_async_function(self) -> None:
        async def add(a: int, b: int) -> int:
            return a + b

        assert await invoke(add, 1, 2) == 3

    @pytest.mark.asyncio
    async def test_sync_function_returning_coroutine(self) -> None:
        async def later() -> str:
            return "done"

        assert await invoke(lambda: later()) == "done"


class TestCallHook:
    """call_hook() translates unexpected failures."""

    @pytest.mark.asyncio
    async def test_domain_error_propagates(self) -> None:
        def hook() -> None:
            raise Conflict("email")

        with pytest.raises(Conflict):
            await call_hook("hook", hook)

    @pytest.mark.asyncio
    async def test_other_error_wrapped(self) -> None:
        async def hook() -> None:
            raise LookupError("missing")

        with pytest.raises(InternalError, match="my_hook failed: missing") as exc_info:
            await call_hook("my_hook", hook)
        assert isinstance(exc_info.value.__cause__, LookupError)


class TestApplyHookResult:
    """Keep / Replace selection."""

    def test_keep_returns_current(self) -> None:
        current = {"email": "a@b.com"}
        assert apply_hook_result("hook", Keep(), current) is current

    def test_replace_returns_value(self) -> None:
        assert apply_hook_result("hook", Replace({"id": 1}), {"email": "a@b.com"}) == {"id": 1}

    def test_replace_with_none(self) -> None:
        """Replace(None) is an explicit override, not a sentinel."""
        assert apply_hook_result("hook", Replace(None), {"email": "a@b.com"}) is None

    @pytest.mark.parametrize("result", [None, {"id": 1}, "keep"])
    def test_untagged_result_rejected(self, result: object) -> None:
        with pytest.raises(InternalError, match="Keep"):
            apply_hook_result("hook", result, {})
