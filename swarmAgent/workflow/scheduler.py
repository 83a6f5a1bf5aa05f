"""Dependency-ordered multi-stage workflow.

Each node runs as an isolated mini swarm (named ``<workflow>:<node>``) built
from the shared agent catalog, restricted to the node's agents and the
delegation edges declared inside the node. Nodes run one after another in
topological order; the output of each stage becomes the input of the next.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from swarmAgent.config.settings import Settings, get_settings
from swarmAgent.hooks import HookRegistry
from swarmAgent.plugins import PluginRegistry, default_plugin_registry
from swarmAgent.runtime.log_stream import LogObserver, LogStream
from swarmAgent.runtime.result import ExecutionResult
from swarmAgent.runtime.schema import AgentDefinition
from swarmAgent.runtime.swarm import Swarm
from swarmAgent.utils.error_handler import (
    AgentNotFoundError,
    CircularDependencyError,
    ConfigurationError,
)
from swarmAgent.utils.logging_utils import log_node_transition

from .context import NodeContext, PreviousResult
from .node import StageNode
from .transformer import INPUT, OUTPUT, SkipExecution, apply_transform

LOGGER = logging.getLogger(__name__)


class WorkflowScheduler:
    """Run a DAG of ``StageNode``s.

    Args:
        name: Workflow name; mini swarms are named ``<name>:<node>``
        agents: Agent catalog shared by all nodes
        nodes: Node declarations
        start_node: Node that receives the original prompt; must have no
            dependencies
        hooks: Hook registrations copied into every mini swarm
        all_agents_hooks: Declarative hooks applied to every agent
        plugins: Plugin registry shared by every mini swarm
        log_stream: Stream receiving node and swarm events
        mcp_manager: MCP server manager handed to each mini swarm
        global_concurrency / default_local_concurrency: Passed to each swarm
        settings: Settings override

    Raises:
        ConfigurationError: Any invalid node graph, at construction time
    """

    def __init__(
        self,
        name: str,
        agents: Iterable[AgentDefinition],
        nodes: Iterable[StageNode],
        start_node: str,
        *,
        hooks: Optional[HookRegistry] = None,
        all_agents_hooks: Optional[Mapping[str, Any]] = None,
        plugins: Optional[PluginRegistry] = None,
        log_stream: Optional[LogStream] = None,
        mcp_manager: Any = None,
        global_concurrency: Optional[int] = None,
        default_local_concurrency: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self.name = name
        self.settings = settings or get_settings()
        self.agents: Dict[str, AgentDefinition] = {}
        for definition in agents:
            if definition.name in self.agents:
                raise ConfigurationError(f"Duplicate agent name: {definition.name}")
            self.agents[definition.name] = definition

        self.nodes: Dict[str, StageNode] = {}
        for node in nodes:
            if node.name in self.nodes:
                raise ConfigurationError(f"Duplicate node name: {node.name}")
            self.nodes[node.name] = node
        self.start_node = start_node

        self.hooks = hooks or HookRegistry()
        self.all_agents_hooks = all_agents_hooks
        self.plugins = plugins if plugins is not None else default_plugin_registry
        self.log_stream = log_stream or LogStream()
        self.mcp_manager = mcp_manager
        self.global_concurrency = global_concurrency
        self.default_local_concurrency = default_local_concurrency

        self._validate()
        self.execution_order = self._build_execution_order()

    # ========== Public API ==========

    def on_log(self, observer: LogObserver) -> LogObserver:
        return self.log_stream.subscribe(observer)

    def run(self, prompt: str) -> ExecutionResult:
        return asyncio.run(self.execute(prompt))

    async def execute(self, prompt: str) -> ExecutionResult:
        """Run every node in order and return the last node's result.

        Raises:
            TransformHaltError: A command transform exited with code 2
        """
        self.log_stream.freeze()
        results: Dict[str, ExecutionResult] = {}
        current_input = prompt
        result: Optional[ExecutionResult] = None

        LOGGER.info(f"🚀 Workflow {self.name} started: {' → '.join(self.execution_order)}")

        for node_name in self.execution_order:
            node = self.nodes[node_name]
            started = time.monotonic()
            self._emit_node_start(node)
            log_node_transition(LOGGER, node_name, "start", f"agents: {', '.join(node.agent_names) or 'none'}")

            input_context = NodeContext.for_input(
                previous_result=self._previous_result(node, results, prompt),
                all_results=results,
                original_prompt=prompt,
                node_name=node_name,
                dependencies=node.dependencies,
                transformed_content=current_input if len(node.dependencies) == 1 else None,
            )

            skipped = False
            transformed = current_input
            if node.input_transform is not None:
                value = await apply_transform(
                    node.input_transform,
                    input_context,
                    phase=INPUT,
                    fallback_content=current_input,
                    swarm_name=self.name,
                )
                if isinstance(value, SkipExecution):
                    skipped = True
                    transformed = value.content
                else:
                    transformed = value

            if skipped:
                result = ExecutionResult(content=transformed, agent=f"skipped:{node_name}")
            elif node.agent_less:
                result = ExecutionResult(content=transformed, agent=f"computation:{node_name}")
            else:
                result = await self._build_swarm(node).execute(transformed or "")

            results[node_name] = result

            output = result.content
            if node.output_transform is not None:
                output_context = NodeContext.for_output(
                    result=result,
                    all_results=results,
                    original_prompt=prompt,
                    node_name=node_name,
                )
                output = await apply_transform(
                    node.output_transform,
                    output_context,
                    phase=OUTPUT,
                    fallback_content=result.content,
                    swarm_name=self.name,
                )
                if node.agent_less and output != result.content:
                    result = replace(result, content=output)
                    results[node_name] = result

            current_input = output
            duration = time.monotonic() - started
            self._emit_node_stop(node, skipped, duration)
            log_node_transition(LOGGER, node_name, "stop", f"{duration:.2f}s{' (skipped)' if skipped else ''}")

        LOGGER.info(f"✓ Workflow {self.name} finished")
        return result

    # ========== Mini swarms ==========

    def _build_swarm(self, node: StageNode) -> Swarm:
        definitions = [
            replace(self.agents[agent_name], delegates_to=node.delegates_of(agent_name))
            for agent_name in node.agent_names
        ]
        return Swarm(
            f"{self.name}:{node.name}",
            definitions,
            lead=node.lead_agent,
            hooks=self.hooks,
            all_agents_hooks=self.all_agents_hooks,
            plugins=self.plugins,
            log_stream=self.log_stream,
            mcp_manager=self.mcp_manager,
            global_concurrency=self.global_concurrency,
            default_local_concurrency=self.default_local_concurrency,
            settings=self.settings,
        )

    @staticmethod
    def _previous_result(
        node: StageNode, results: Mapping[str, ExecutionResult], prompt: str
    ) -> PreviousResult:
        if not node.dependencies:
            return prompt
        if len(node.dependencies) == 1:
            return results.get(node.dependencies[0])
        return {dep: results[dep] for dep in node.dependencies if dep in results}

    # ========== Validation ==========

    def _validate(self) -> None:
        if not self.nodes:
            raise ConfigurationError(f"Workflow '{self.name}' has no nodes")
        if self.start_node not in self.nodes:
            raise ConfigurationError(
                f"start_node '{self.start_node}' not found. Available nodes: {', '.join(self.nodes)}"
            )
        if self.nodes[self.start_node].dependencies:
            raise ConfigurationError(
                f"start_node '{self.start_node}' cannot have dependencies "
                f"(depends on: {', '.join(self.nodes[self.start_node].dependencies)})"
            )

        for node in self.nodes.values():
            node.validate()
            for dep in node.dependencies:
                if dep not in self.nodes:
                    raise ConfigurationError(f"Node '{node.name}' depends on unknown node '{dep}'")
            for agent_name in node.agent_names:
                if agent_name not in self.agents:
                    raise AgentNotFoundError(
                        f"Node '{node.name}' references undefined agent '{agent_name}'"
                    )

    def _build_execution_order(self) -> List[str]:
        """Kahn's algorithm, seeded with the start node."""
        in_degree = {name: len(node.dependencies) for name, node in self.nodes.items()}
        dependents: Dict[str, List[str]] = {name: [] for name in self.nodes}
        for name, node in self.nodes.items():
            for dep in node.dependencies:
                dependents[dep].append(name)

        ready = deque([self.start_node])
        ready.extend(n for n, degree in in_degree.items() if degree == 0 and n != self.start_node)

        order: List[str] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    ready.append(dependent)

        if len(order) < len(self.nodes):
            raise CircularDependencyError(n for n in self.nodes if n not in order)
        return order

    # ========== Events ==========

    def _emit_node_start(self, node: StageNode) -> None:
        self.log_stream.emit(
            type="node_start",
            node=node.name,
            agent_less=node.agent_less,
            agents=node.agent_names,
            dependencies=list(node.dependencies),
        )

    def _emit_node_stop(self, node: StageNode, skipped: bool, duration: float) -> None:
        self.log_stream.emit(
            type="node_stop",
            node=node.name,
            agent_less=node.agent_less,
            skipped=skipped,
            agents=node.agent_names,
            duration=round(duration, 3),
        )
