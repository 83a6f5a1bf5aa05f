"""Workflow node declaration.

Example:
    planning = StageNode("planning")
    planning.agent("architect").delegates_to("researcher")
    planning.output(lambda ctx: f"PLAN:\\n{ctx.content}")

    build = StageNode("build").depends_on("planning")
    build.agent("coder")
    build.input_command("python scripts/trim.py", timeout=30)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from swarmAgent.utils.error_handler import ConfigurationError

from .transformer import CommandTransform, Transform


@dataclass
class NodeAgent:
    """One agent inside a node with its intra-node delegation edges."""

    name: str
    delegates: Tuple[str, ...] = ()


class NodeAgentBuilder:
    """Returned by ``StageNode.agent`` so delegation can be chained."""

    def __init__(self, node: "StageNode", entry: NodeAgent):
        self._node = node
        self._entry = entry

    def delegates_to(self, *agent_names: str) -> "StageNode":
        self._entry.delegates = tuple(agent_names)
        return self._node


class StageNode:
    """One stage of a workflow: a mini swarm, a pure transform, or both."""

    def __init__(self, name: str):
        if not name:
            raise ConfigurationError("Node name must not be empty")
        self.name = name
        self.agents: List[NodeAgent] = []
        self.dependencies: List[str] = []
        self.lead_override: Optional[str] = None
        self.input_transform: Optional[Transform] = None
        self.output_transform: Optional[Transform] = None

    # ========== Builder API ==========

    def agent(self, name: str) -> NodeAgentBuilder:
        entry = self._find(name)
        if entry is None:
            entry = NodeAgent(name)
            self.agents.append(entry)
        return NodeAgentBuilder(self, entry)

    def depends_on(self, *node_names: str) -> "StageNode":
        for node_name in node_names:
            if node_name not in self.dependencies:
                self.dependencies.append(node_name)
        return self

    def lead(self, agent_name: str) -> "StageNode":
        self.lead_override = agent_name
        return self

    def input(self, transform: Transform) -> "StageNode":
        self.input_transform = transform
        return self

    def output(self, transform: Transform) -> "StageNode":
        self.output_transform = transform
        return self

    def input_command(self, command: str, timeout: float = 60.0) -> "StageNode":
        return self.input(CommandTransform(command, timeout))

    def output_command(self, command: str, timeout: float = 60.0) -> "StageNode":
        return self.output(CommandTransform(command, timeout))

    # ========== Queries ==========

    @property
    def agent_names(self) -> List[str]:
        return [a.name for a in self.agents]

    @property
    def lead_agent(self) -> Optional[str]:
        if self.lead_override:
            return self.lead_override
        return self.agents[0].name if self.agents else None

    @property
    def agent_less(self) -> bool:
        return not self.agents

    @property
    def has_transforms(self) -> bool:
        return self.input_transform is not None or self.output_transform is not None

    def delegates_of(self, agent_name: str) -> Tuple[str, ...]:
        entry = self._find(agent_name)
        return entry.delegates if entry else ()

    def validate(self) -> None:
        """Check the node on its own and add undeclared delegation targets.

        Raises:
            ConfigurationError: Agent-less node without transforms, or a lead
                override that is not one of the node's agents
        """
        for target in [d for a in list(self.agents) for d in a.delegates]:
            if self._find(target) is None:
                self.agents.append(NodeAgent(target))

        if self.agent_less and not self.has_transforms:
            raise ConfigurationError(
                f"Agent-less node '{self.name}' must have at least one transformer (input or output)"
            )
        if self.lead_override and self._find(self.lead_override) is None:
            raise ConfigurationError(
                f"Node '{self.name}' lead agent '{self.lead_override}' not found in node's agents"
            )

    def _find(self, agent_name: str) -> Optional[NodeAgent]:
        for entry in self.agents:
            if entry.name == agent_name:
                return entry
        return None

    def __repr__(self) -> str:
        return f"StageNode({self.name!r}, agents={self.agent_names}, depends_on={self.dependencies})"
