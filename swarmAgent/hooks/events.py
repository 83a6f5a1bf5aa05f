"""Lifecycle events that hooks can intercept."""

from __future__ import annotations

from enum import Enum


class HookEvent(str, Enum):
    """Closed set of interceptable lifecycle points."""

    SWARM_START = "swarm_start"
    SWARM_STOP = "swarm_stop"
    FIRST_MESSAGE = "first_message"
    USER_PROMPT = "user_prompt"
    AGENT_STEP = "agent_step"
    AGENT_STOP = "agent_stop"
    PRE_TOOL_USE = "pre_tool_use"
    POST_TOOL_USE = "post_tool_use"
    PRE_DELEGATION = "pre_delegation"
    POST_DELEGATION = "post_delegation"
    CONTEXT_WARNING = "context_warning"

    @classmethod
    def parse(cls, value: "str | HookEvent") -> "HookEvent":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ValueError(f"Unknown hook event '{value}'. Valid events: {valid}") from None


# Only these may be declared at swarm level
SWARM_LEVEL_EVENTS = frozenset({HookEvent.SWARM_START, HookEvent.SWARM_STOP})

AGENT_LEVEL_EVENTS = frozenset(set(HookEvent) - SWARM_LEVEL_EVENTS)

# Events whose registrations may carry a tool-name matcher
TOOL_EVENTS = frozenset({HookEvent.PRE_TOOL_USE, HookEvent.POST_TOOL_USE})
