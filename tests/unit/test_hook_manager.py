"""
Unit tests for HookManager.
"""

from unittest.mock import Mock

import pytest

from tokenpipe.auth_token.hook_manager import HookManager, RefreshEvent


class TestHookManager:
    """Test class for HookManager functionality."""

    def setup_method(self):
        """Setup method called before each test."""
        self.hook_manager = HookManager()

    def test_register_adds_hook(self):
        hook = Mock()

        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH, hook)

        assert self.hook_manager.hooks_for(RefreshEvent.TOKEN_REFRESH) == [hook]
        assert self.hook_manager.hooks_for(RefreshEvent.TOKEN_REFRESH_FAILED) == []

    def test_register_accepts_event_name(self):
        hook = Mock()

        self.hook_manager.register("on_csrf_token_refresh", hook)

        assert self.hook_manager.hooks_for(RefreshEvent.CSRF_TOKEN_REFRESH) == [hook]

    def test_register_rejects_unknown_event(self):
        with pytest.raises(ValueError):
            self.hook_manager.register("on_something_else", Mock())

    def test_fire_calls_every_hook_in_order(self):
        calls = []
        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH, lambda t: calls.append(("a", t)))
        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH, lambda t: calls.append(("b", t)))

        self.hook_manager.fire(RefreshEvent.TOKEN_REFRESH, "T2")

        assert calls == [("a", "T2"), ("b", "T2")]

    def test_fire_isolates_hook_errors(self, caplog):
        failing = Mock(side_effect=RuntimeError("hook broke"))
        after = Mock()
        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH_FAILED, failing)
        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH_FAILED, after)

        self.hook_manager.fire(RefreshEvent.TOKEN_REFRESH_FAILED, "err")

        after.assert_called_once_with("err")
        assert "hook broke" in caplog.text

    @pytest.mark.asyncio
    async def test_coroutine_hooks_are_retained_and_drained(self):
        seen = []

        async def hook(token):
            seen.append(token)

        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH, hook)

        self.hook_manager.fire(RefreshEvent.TOKEN_REFRESH, "T2")
        assert self.hook_manager.pending == 1

        await self.hook_manager.drain()

        assert seen == ["T2"]
        assert self.hook_manager.pending == 0

    @pytest.mark.asyncio
    async def test_coroutine_hook_failure_is_logged(self, caplog):
        async def hook(token):
            raise RuntimeError("async hook broke")

        self.hook_manager.register(RefreshEvent.TOKEN_REFRESH, hook)

        self.hook_manager.fire(RefreshEvent.TOKEN_REFRESH, "T2")
        await self.hook_manager.drain()

        assert "async hook broke" in caplog.text
