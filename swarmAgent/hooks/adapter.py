"""Declarative (YAML) hook configuration → registry entries.

Swarm level accepts only ``swarm_start`` and ``swarm_stop``. ``all_agents``
and per-agent sections accept every other event. Entries take either form::

    pre_tool_use:
      - matcher: "Write|Edit"
        hooks:
          - type: command
            command: "python validate.py"
            timeout: 10
      - name: audit_tool_use        # named hook from HookRegistry.register_named
        priority: 5
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from swarmAgent.utils.error_handler import ConfigurationError

from .context import HookContext
from .events import AGENT_LEVEL_EVENTS, SWARM_LEVEL_EVENTS, HookEvent
from .registry import HookCallable, HookRegistry
from .result import CONTINUE, HookResult
from .shell import ProcessRunner

LOGGER = logging.getLogger(__name__)

# Events where exit-0 stdout is injected as context rather than ignored
STDOUT_CONTEXT_EVENTS = frozenset({HookEvent.SWARM_START})


def command_hook(
    command: str,
    *,
    timeout: float,
    swarm_name: Optional[str] = None,
    working_dir: Optional[str] = None,
) -> HookCallable:
    """Create a hook that runs ``command`` with the serialized context on stdin.

    Exit 0 → Continue. On swarm_start a non-empty stdout becomes
    Replace(stdout), which the engine appends to the prompt as context.
    Exit 2 → Halt(stderr). Anything else → Continue.
    """
    runner = ProcessRunner(timeout=timeout)

    async def _run_command(context: HookContext) -> HookResult:
        cwd = working_dir
        if cwd is None and context.swarm is not None:
            cwd = getattr(context.swarm, "agent_directory", lambda _n: None)(context.agent_name)
        outcome = await runner.run(
            command,
            context.to_payload(),
            working_dir=cwd,
            agent_name=context.agent_name,
            swarm_name=context.swarm_name or swarm_name,
            event=context.event.value,
        )
        if outcome.is_halt:
            return HookResult.halt(outcome.reason)
        if outcome.is_continue and outcome.content and context.event in STDOUT_CONTEXT_EVENTS:
            return HookResult.replace(outcome.content)
        return CONTINUE

    _run_command.__name__ = f"command:{command}"
    return _run_command


def apply_swarm_hooks(
    registry: HookRegistry,
    config: Optional[Mapping[str, Any]],
    *,
    swarm_name: Optional[str],
    default_timeout: float,
) -> None:
    for event, entries in _iter_events(config):
        if event not in SWARM_LEVEL_EVENTS:
            raise ConfigurationError(
                f"Invalid swarm-level hook event: {event.value}. "
                f"Only swarm_start, swarm_stop are allowed at swarm.hooks level. "
                f"Use all_agents.hooks or agent hooks for other events."
            )
        _register_entries(registry, event, entries, None, swarm_name, default_timeout)


def apply_agent_hooks(
    registry: HookRegistry,
    config: Optional[Mapping[str, Any]],
    *,
    agent_name: Optional[str],
    swarm_name: Optional[str],
    default_timeout: float,
) -> None:
    """Register agent-level hooks. ``agent_name=None`` means all agents."""
    for event, entries in _iter_events(config):
        if event not in AGENT_LEVEL_EVENTS:
            valid = ", ".join(sorted(e.value for e in AGENT_LEVEL_EVENTS))
            raise ConfigurationError(f"Invalid agent-level hook event: {event.value}. Valid events: {valid}")
        _register_entries(registry, event, entries, agent_name, swarm_name, default_timeout)


def _iter_events(config: Optional[Mapping[str, Any]]) -> Iterable:
    if not config:
        return []
    if not isinstance(config, Mapping):
        raise ConfigurationError(f"Hooks configuration must be a mapping, got {type(config).__name__}")
    pairs = []
    for raw_event, entries in config.items():
        try:
            event = HookEvent.parse(raw_event)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        pairs.append((event, _as_list(entries)))
    return pairs


def _register_entries(
    registry: HookRegistry,
    event: HookEvent,
    entries: List[Any],
    agent_name: Optional[str],
    swarm_name: Optional[str],
    default_timeout: float,
) -> None:
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Hook entry for {event.value} must be a mapping: {entry!r}")

        matcher = entry.get("matcher")
        priority = int(entry.get("priority", 0))
        # Grouped form: {matcher, hooks: [...]}
        hook_defs = _as_list(entry["hooks"]) if "hooks" in entry else [entry]

        for hook_def in hook_defs:
            if not isinstance(hook_def, Mapping):
                raise ConfigurationError(f"Hook definition for {event.value} must be a mapping: {hook_def!r}")
            def_priority = int(hook_def.get("priority", priority))
            def_matcher = hook_def.get("matcher", matcher)

            if "name" in hook_def and "command" not in hook_def:
                registry.use_named(
                    event, hook_def["name"], priority=def_priority, matcher=def_matcher, agent=agent_name
                )
                continue

            hook_type = hook_def.get("type", "command")
            command = hook_def.get("command")
            if hook_type != "command" or not command:
                raise ConfigurationError(
                    f"Hook for {event.value} needs 'type: command' and a 'command', got {dict(hook_def)!r}"
                )
            callback = command_hook(
                command,
                timeout=float(hook_def.get("timeout", default_timeout)),
                swarm_name=swarm_name,
            )
            registry.register(
                event, callback, priority=def_priority, matcher=def_matcher, agent=agent_name, name=callback.__name__
            )
            LOGGER.debug(f"  ✓ Command hook on {event.value} for {agent_name or 'all agents'}: {command}")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


__all__ = ["apply_agent_hooks", "apply_swarm_hooks", "command_hook"]
