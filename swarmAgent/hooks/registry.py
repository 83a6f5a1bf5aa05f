"""Hook registry: registrations per event, sorted by priority.

Registrations accumulate during setup. The execution engine freezes the
registry before the first run; after that it is a read-only snapshot and
further registration raises ExecutionStateError.
"""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from swarmAgent.utils.error_handler import ConfigurationError, ExecutionStateError

from .context import HookContext
from .events import TOOL_EVENTS, HookEvent
from .result import HookResult

LOGGER = logging.getLogger(__name__)

HookReturn = Union[HookResult, None, Awaitable[Optional[HookResult]]]
HookCallable = Callable[[HookContext], HookReturn]


@dataclass(frozen=True)
class HookRegistration:
    """One interceptor bound to an event.

    ``agent`` scopes the registration to a single agent; None applies it to
    every agent. ``matcher`` only filters tool events, against the tool name.
    """

    event: HookEvent
    callback: HookCallable
    priority: int = 0
    matcher: Optional["re.Pattern[str]"] = None
    agent: Optional[str] = None
    name: Optional[str] = None
    sequence: int = 0

    @property
    def label(self) -> str:
        return self.name or getattr(self.callback, "__name__", repr(self.callback))

    def applies_to(self, context: HookContext) -> bool:
        if self.agent is not None and context.agent_name != self.agent:
            return False
        if self.matcher is not None and self.event in TOOL_EVENTS:
            tool_name = context.tool_name
            if tool_name is not None:
                return self.matcher.search(tool_name) is not None
        return True


class HookRegistry:
    """Registrations per event plus a table of named hooks."""

    def __init__(self):
        self._hooks: Dict[HookEvent, List[HookRegistration]] = {}
        self._named: Dict[str, HookCallable] = {}
        self._sequence = itertools.count()
        self._frozen = False

    # ========== Registration ==========

    def register(
        self,
        event: Union[str, HookEvent],
        callback: Optional[HookCallable] = None,
        *,
        priority: int = 0,
        matcher: Union[str, "re.Pattern[str]", None] = None,
        agent: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Any:
        """Register ``callback`` for ``event``.

        Can be used directly or as a decorator::

            @registry.register("pre_tool_use", matcher="Bash", priority=10)
            def block_rm(ctx):
                ...
        """
        if callback is None:
            def decorator(fn: HookCallable) -> HookCallable:
                self.register(event, fn, priority=priority, matcher=matcher, agent=agent, name=name)
                return fn
            return decorator

        self._ensure_mutable()
        hook_event = self._parse_event(event)
        registration = HookRegistration(
            event=hook_event,
            callback=callback,
            priority=int(priority),
            matcher=self._compile_matcher(matcher),
            agent=agent,
            name=name,
            sequence=next(self._sequence),
        )
        bucket = self._hooks.setdefault(hook_event, [])
        bucket.append(registration)
        bucket.sort(key=lambda r: (-r.priority, r.sequence))
        LOGGER.debug(f"  Registered hook {registration.label} on {hook_event.value} (priority {priority})")
        return registration

    def register_named(self, name: str, callback: HookCallable) -> None:
        """Make ``callback`` available to declarative config under ``name``."""
        self._ensure_mutable()
        if name in self._named:
            raise ConfigurationError(f"Named hook already registered: {name}")
        self._named[name] = callback

    def get_named(self, name: str) -> HookCallable:
        if name not in self._named:
            available = ", ".join(sorted(self._named)) or "(none)"
            raise ConfigurationError(f"Named hook not found: {name}. Available: {available}")
        return self._named[name]

    def use_named(
        self,
        event: Union[str, HookEvent],
        name: str,
        *,
        priority: int = 0,
        matcher: Union[str, "re.Pattern[str]", None] = None,
        agent: Optional[str] = None,
    ) -> HookRegistration:
        """Register a previously named hook on ``event``."""
        return self.register(event, self.get_named(name), priority=priority, matcher=matcher, agent=agent, name=name)

    def include(self, other: "HookRegistry") -> None:
        """Copy every registration and named hook from ``other``.

        Relative order within each event is preserved.
        """
        for name, callback in other._named.items():
            if name not in self._named:
                self.register_named(name, callback)
        for event, registrations in other._hooks.items():
            for r in registrations:
                self.register(
                    event, r.callback, priority=r.priority, matcher=r.matcher, agent=r.agent, name=r.name
                )

    # ========== Lookup ==========

    def get(self, event: Union[str, HookEvent]) -> Tuple[HookRegistration, ...]:
        """Registrations for ``event`` in execution order."""
        return tuple(self._hooks.get(self._parse_event(event), ()))

    def has(self, event: Union[str, HookEvent]) -> bool:
        return bool(self._hooks.get(self._parse_event(event)))

    def __len__(self) -> int:
        return sum(len(v) for v in self._hooks.values())

    # ========== Lifecycle ==========

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def clear(self) -> None:
        """Drop every registration and unfreeze. Intended for tests."""
        self._hooks.clear()
        self._named.clear()
        self._frozen = False

    # ========== Internals ==========

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise ExecutionStateError("Hook registry is frozen; register hooks before execution starts")

    @staticmethod
    def _parse_event(event: Union[str, HookEvent]) -> HookEvent:
        try:
            return HookEvent.parse(event)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @staticmethod
    def _compile_matcher(matcher: Union[str, "re.Pattern[str]", None]) -> Optional["re.Pattern[str]"]:
        if matcher is None or isinstance(matcher, re.Pattern):
            return matcher
        try:
            return re.compile(str(matcher))
        except re.error as e:
            raise ConfigurationError(f"Invalid hook matcher '{matcher}': {e}") from e
