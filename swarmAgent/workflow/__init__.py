"""Multi-stage workflows built from isolated mini swarms."""

from .context import NodeContext
from .node import NodeAgent, StageNode
from .scheduler import WorkflowScheduler
from .transformer import CommandTransform, SkipExecution, apply_transform

__all__ = [
    "CommandTransform",
    "NodeAgent",
    "NodeContext",
    "SkipExecution",
    "StageNode",
    "WorkflowScheduler",
    "apply_transform",
]
