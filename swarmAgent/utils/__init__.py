"""Utilities for swarmAgent."""

from .logging_utils import (
    log_error,
    log_hook_result,
    log_node_transition,
    log_tool_call,
    log_tool_result,
    setup_logging,
)
from .error_handler import (
    AgentNotFoundError,
    CircularDependencyError,
    ConfigurationError,
    ExecutionStateError,
    HookHaltError,
    SwarmError,
    TransformHaltError,
    format_exception,
    safe_tool_call,
)

__all__ = [
    "setup_logging",
    "log_error",
    "log_hook_result",
    "log_node_transition",
    "log_tool_call",
    "log_tool_result",
    "SwarmError",
    "ConfigurationError",
    "AgentNotFoundError",
    "CircularDependencyError",
    "TransformHaltError",
    "ExecutionStateError",
    "HookHaltError",
    "format_exception",
    "safe_tool_call",
]
