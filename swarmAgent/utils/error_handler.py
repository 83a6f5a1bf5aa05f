"""Error types and tool error boundaries for swarmAgent."""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable, Iterable, Optional

LOGGER = logging.getLogger(__name__)


class SwarmError(Exception):
    """Base exception for swarmAgent errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class ConfigurationError(SwarmError):
    """Invalid swarm, agent, hook or workflow declaration.

    Raised while building or validating a swarm. Never caught by the
    execution loop.
    """
    pass


class AgentNotFoundError(ConfigurationError):
    """A lead, delegate or node member names an undeclared agent."""
    pass


class CircularDependencyError(ConfigurationError):
    """Workflow nodes form a dependency cycle."""

    def __init__(self, nodes: Iterable[str]):
        self.nodes = sorted(nodes)
        super().__init__(
            f"Circular dependency detected. Unprocessed nodes: {', '.join(self.nodes)}"
        )


class TransformHaltError(SwarmError):
    """A workflow transformer asked to halt the whole run (exit code 2)."""

    def __init__(self, node_name: str, phase: str, reason: str):
        self.node_name = node_name
        self.phase = phase
        self.reason = reason
        super().__init__(f"Node '{node_name}' {phase} transformer halted workflow: {reason}")


class HookHaltError(SwarmError):
    """A hook halted an execution before it could start."""

    def __init__(self, event: str, reason: Optional[str]):
        self.event = event
        self.reason = reason or "halted by hook"
        super().__init__(f"{event} hook halted execution: {self.reason}")


class ExecutionStateError(SwarmError):
    """Operation not allowed in the current execution state."""
    pass


def format_exception(error: BaseException) -> str:
    """Render an exception as ``ClassName: message``."""
    return f"{type(error).__name__}: {error}"


def safe_tool_call(tool_name: str):
    """Decorator for safe tool execution with error handling.

    Works for plain and ``async`` tool functions. Failures are logged and
    returned as a JSON error payload so the calling model sees them as
    ordinary tool output.

    Example:
        @tool
        @safe_tool_call("read_file")
        def read_file(file_path: str) -> str:
            ...
    """
    def _error_payload(error: Exception) -> str:
        LOGGER.exception(f"Tool {tool_name} failed", exc_info=error)
        return json.dumps({
            "ok": False,
            "error": f"Tool execution failed: {error}"
        }, ensure_ascii=False)

    def decorator(func: Callable) -> Callable:
        import asyncio

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> str:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    return _error_payload(e)
            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> str:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _error_payload(e)
        return wrapper
    return decorator
