"""Top-level package exports for swarmAgent."""

from .config import SwarmDefinition, get_settings, load_swarm_definition
from .hooks import HookContext, HookEvent, HookRegistry, HookResult
from .permissions import PermissionConfig, PermissionValidator
from .plugins import Plugin, PluginRegistry, default_plugin_registry
from .runtime import AgentDefinition, ExecutionResult, LogStream, ModelPricing, Swarm
from .workflow import NodeContext, SkipExecution, StageNode, WorkflowScheduler

__all__ = [
    "AgentDefinition",
    "ExecutionResult",
    "HookContext",
    "HookEvent",
    "HookRegistry",
    "HookResult",
    "LogStream",
    "ModelPricing",
    "NodeContext",
    "PermissionConfig",
    "PermissionValidator",
    "Plugin",
    "PluginRegistry",
    "SkipExecution",
    "StageNode",
    "Swarm",
    "SwarmDefinition",
    "WorkflowScheduler",
    "default_plugin_registry",
    "get_settings",
    "load_swarm_definition",
]
