"""Lifecycle hook protocol: events, registry, executor and command hooks."""

from .adapter import apply_agent_hooks, apply_swarm_hooks, command_hook
from .context import HookContext, ToolCall, ToolResult
from .events import AGENT_LEVEL_EVENTS, SWARM_LEVEL_EVENTS, TOOL_EVENTS, HookEvent
from .executor import HookExecutor
from .registry import HookCallable, HookRegistration, HookRegistry
from .result import CONTINUE, HookAction, HookResult
from .shell import OutcomeKind, ProcessOutcome, ProcessRunner

__all__ = [
    "AGENT_LEVEL_EVENTS",
    "CONTINUE",
    "HookAction",
    "HookCallable",
    "HookContext",
    "HookEvent",
    "HookExecutor",
    "HookRegistration",
    "HookRegistry",
    "HookResult",
    "OutcomeKind",
    "ProcessOutcome",
    "ProcessRunner",
    "SWARM_LEVEL_EVENTS",
    "TOOL_EVENTS",
    "ToolCall",
    "ToolResult",
    "apply_agent_hooks",
    "apply_swarm_hooks",
    "command_hook",
]
