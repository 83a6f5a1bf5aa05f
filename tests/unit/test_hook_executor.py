"""Unit tests for HookExecutor dispatch semantics."""

import pytest

from swarmAgent.hooks import HookContext, HookEvent, HookExecutor, HookRegistry, HookResult


def context(event=HookEvent.PRE_TOOL_USE):
    return HookContext(event, agent_name="lead")


class TestHookExecutor:

    @pytest.mark.asyncio
    async def test_default_is_continue(self):
        result = await HookExecutor(HookRegistry()).execute(context())
        assert result.is_continue

    @pytest.mark.asyncio
    async def test_higher_priority_halt_stops_chain(self):
        calls = []
        registry = HookRegistry()

        def low(ctx):
            calls.append("low")

        def high(ctx):
            calls.append("high")
            return HookResult.halt("blocked")

        registry.register("pre_tool_use", low, priority=-5)
        registry.register("pre_tool_use", high, priority=10)

        result = await HookExecutor(registry).execute(context())

        assert calls == ["high"]
        assert result.is_halt
        assert result.value == "blocked"

    @pytest.mark.asyncio
    async def test_raising_hook_is_downgraded_to_continue(self):
        calls = []
        registry = HookRegistry()

        def broken(ctx):
            raise RuntimeError("boom")

        registry.register("pre_tool_use", broken, priority=5)
        registry.register("pre_tool_use", lambda ctx: calls.append("next"), priority=0)

        result = await HookExecutor(registry).execute(context())

        assert result.is_continue
        assert calls == ["next"]

    @pytest.mark.asyncio
    async def test_async_hooks_are_awaited(self):
        registry = HookRegistry()

        async def replace(ctx):
            return HookResult.replace("cached")

        registry.register("pre_tool_use", replace)
        result = await HookExecutor(registry).execute(context())

        assert result.is_replace
        assert result.value == "cached"

    @pytest.mark.asyncio
    async def test_non_result_return_values_are_ignored(self):
        registry = HookRegistry()
        registry.register("swarm_stop", lambda ctx: "not a HookResult", priority=1)
        registry.register("swarm_stop", lambda ctx: HookResult.reprompt("again"))

        result = await HookExecutor(registry).execute(context(HookEvent.SWARM_STOP))

        assert result.is_reprompt
        assert result.value == "again"

    @pytest.mark.asyncio
    async def test_explicit_continue_moves_to_next_hook(self):
        registry = HookRegistry()
        registry.register("swarm_start", lambda ctx: HookResult.continue_(), priority=1)
        registry.register("swarm_start", lambda ctx: HookResult.replace("extra"))

        result = await HookExecutor(registry).execute(context(HookEvent.SWARM_START))

        assert result.is_replace
