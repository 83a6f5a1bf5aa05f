"""Execution engine: agent runners, delegation and the swarm loop."""

from .agent import AgentRunner
from .delegation import DelegateTool, delegation_tool_name
from .log_stream import LogObserver, LogStream
from .result import ExecutionResult
from .schema import AgentDefinition, ModelPricing
from .swarm import Swarm

__all__ = [
    "AgentDefinition",
    "AgentRunner",
    "DelegateTool",
    "ExecutionResult",
    "LogObserver",
    "LogStream",
    "ModelPricing",
    "Swarm",
    "delegation_tool_name",
]
