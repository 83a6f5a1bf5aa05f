"""Unit tests for HookRegistry registration and lifecycle."""

import pytest

from swarmAgent.hooks import HookContext, HookEvent, HookRegistry, ToolCall
from swarmAgent.utils import ConfigurationError, ExecutionStateError


def noop(ctx):
    return None


class TestHookRegistry:

    def test_orders_by_priority_then_registration(self):
        registry = HookRegistry()
        registry.register("pre_tool_use", noop, priority=-5, name="low")
        registry.register("pre_tool_use", noop, priority=10, name="high")
        registry.register("pre_tool_use", noop, priority=10, name="high-second")

        assert [r.name for r in registry.get("pre_tool_use")] == ["high", "high-second", "low"]

    def test_decorator_form(self):
        registry = HookRegistry()

        @registry.register(HookEvent.SWARM_STOP, priority=3)
        def on_stop(ctx):
            return None

        (registration,) = registry.get(HookEvent.SWARM_STOP)
        assert registration.callback is on_stop
        assert registration.label == "on_stop"

    def test_unknown_event_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Unknown hook event"):
            HookRegistry().register("on_banana", noop)

    def test_invalid_matcher_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Invalid hook matcher"):
            HookRegistry().register("pre_tool_use", noop, matcher="(")

    def test_frozen_registry_rejects_registration(self):
        registry = HookRegistry()
        registry.freeze()

        with pytest.raises(ExecutionStateError):
            registry.register("swarm_start", noop)

        registry.clear()
        registry.register("swarm_start", noop)
        assert len(registry) == 1

    def test_matcher_filters_tool_events_only(self):
        registry = HookRegistry()
        registration = registry.register("pre_tool_use", noop, matcher="^(Write|Edit)$")

        write = HookContext(HookEvent.PRE_TOOL_USE, tool_call=ToolCall("1", "Write"))
        read = HookContext(HookEvent.PRE_TOOL_USE, tool_call=ToolCall("2", "Read"))
        assert registration.applies_to(write)
        assert not registration.applies_to(read)

    def test_agent_scope(self):
        registry = HookRegistry()
        registration = registry.register("user_prompt", noop, agent="coder")

        assert registration.applies_to(HookContext(HookEvent.USER_PROMPT, agent_name="coder"))
        assert not registration.applies_to(HookContext(HookEvent.USER_PROMPT, agent_name="lead"))

    def test_named_hooks(self):
        registry = HookRegistry()
        registry.register_named("audit", noop)

        registry.use_named("post_tool_use", "audit", priority=2)
        assert registry.get("post_tool_use")[0].name == "audit"

        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register_named("audit", noop)
        with pytest.raises(ConfigurationError, match="Named hook not found"):
            registry.get_named("missing")

    def test_include_copies_registrations_and_names(self):
        source = HookRegistry()
        source.register_named("audit", noop)
        source.register("swarm_start", noop, priority=1, name="a")
        source.register("swarm_start", noop, priority=5, name="b")
        source.freeze()

        target = HookRegistry()
        target.include(source)

        assert [r.name for r in target.get("swarm_start")] == ["b", "a"]
        assert target.get_named("audit") is noop
