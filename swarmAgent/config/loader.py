"""YAML swarm definitions.

File layout::

    version: 2
    swarm:
      name: "Dev Team"
      lead: architect
      global_concurrency: 20          # optional
      hooks:                          # swarm_start / swarm_stop only
        swarm_stop:
          - type: command
            command: "python summarize.py"
      all_agents:                     # merged into every agent
        tools: [Read]
        permissions:
          denied_paths: ["secrets/**"]
        hooks:
          pre_tool_use: [...]
      mcp_servers:
        servers:
          github:
            command: npx
            args: ["-y", "@modelcontextprotocol/server-github"]
            tools:
              search_issues: {alias: gh_search}
      agents:
        architect:
          description: "Plans the work"
          model: gpt-4o
          system_prompt: "..."
          tools: [Read, Write]
          mcp_servers: [github]
          delegates_to: [coder]
          directory: .
        coder:
          description: "Writes code"
      nodes:                          # optional: run as a workflow instead
        planning:
          agents: [{architect: [coder]}]
        review:
          agents: [coder]
          depends_on: [planning]
          output_command: "python format.py"
      start_node: planning

``${VAR}`` and ``${VAR:=default}`` are interpolated from the environment in
every string value. Relative directories resolve against the YAML file.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml
from langchain_core.tools import BaseTool

from swarmAgent.plugins import PluginRegistry, default_plugin_registry
from swarmAgent.utils.error_handler import CircularDependencyError, ConfigurationError

from .settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

SUPPORTED_VERSION = 2

_ENV_VAR_PATTERN = re.compile(r"\$\{([^:}]+)(:=([^}]*))?\}")

ToolCatalog = Mapping[str, BaseTool]


@dataclass
class SwarmDefinition:
    """Everything needed to build a ``Swarm`` or ``WorkflowScheduler``."""

    name: str
    lead: Optional[str]
    agents: List[Any]
    hooks: Dict[str, Any] = field(default_factory=dict)
    all_agents_hooks: Dict[str, Any] = field(default_factory=dict)
    nodes: List[Any] = field(default_factory=list)
    start_node: Optional[str] = None
    mcp_manager: Any = None
    global_concurrency: Optional[int] = None
    local_concurrency: Optional[int] = None
    settings: Optional[Settings] = None

    @property
    def is_workflow(self) -> bool:
        return bool(self.nodes)

    def build(
        self,
        *,
        hooks: Any = None,
        plugins: Optional[PluginRegistry] = None,
        log_stream: Any = None,
    ):
        """Return a ``WorkflowScheduler`` when nodes are declared, else a ``Swarm``."""
        from swarmAgent.runtime.swarm import Swarm
        from swarmAgent.workflow.scheduler import WorkflowScheduler

        common = dict(
            hooks=hooks,
            all_agents_hooks=self.all_agents_hooks or None,
            plugins=plugins,
            log_stream=log_stream,
            mcp_manager=self.mcp_manager,
            global_concurrency=self.global_concurrency,
            default_local_concurrency=self.local_concurrency,
            settings=self.settings,
        )
        if self.is_workflow:
            if not self.start_node:
                raise ConfigurationError(f"Workflow '{self.name}' declares nodes but no start_node")
            return WorkflowScheduler(self.name, self.agents, self.nodes, self.start_node, **common)
        return Swarm(self.name, self.agents, self.lead, hooks_config=self.hooks or None, **common)


def load_swarm_definition(
    path: Union[str, Path],
    *,
    tools: Optional[ToolCatalog] = None,
    model_resolver: Optional[Callable[..., Any]] = None,
    plugins: Optional[PluginRegistry] = None,
    settings: Optional[Settings] = None,
) -> SwarmDefinition:
    """Load a YAML swarm file.

    Args:
        path: YAML file
        tools: Tool catalog, name → tool instance
        model_resolver: Maps a model id to a chat model; defaults to the
            ChatOpenAI resolver built from settings
        plugins: Registry consulted for plugin-provided tool names
        settings: Settings override

    Raises:
        ConfigurationError: Missing file, invalid YAML or invalid declarations
    """
    path = Path(path).expanduser().resolve()
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax: {e}")

    if not isinstance(raw, dict):
        raise ConfigurationError("Invalid YAML syntax: configuration must be a mapping")

    return parse_swarm_definition(
        interpolate_env_vars(raw),
        base_dir=path.parent,
        tools=tools,
        model_resolver=model_resolver,
        plugins=plugins,
        settings=settings,
    )


def parse_swarm_definition(
    config: Mapping[str, Any],
    *,
    base_dir: Union[str, Path] = ".",
    tools: Optional[ToolCatalog] = None,
    model_resolver: Optional[Callable[..., Any]] = None,
    plugins: Optional[PluginRegistry] = None,
    settings: Optional[Settings] = None,
) -> SwarmDefinition:
    """Build a ``SwarmDefinition`` from an already-parsed mapping."""
    from swarmAgent.tools.mcp import MCPServerManager

    settings = settings or get_settings()
    plugins = plugins if plugins is not None else default_plugin_registry
    base_dir = Path(base_dir)

    version = config.get("version")
    if version is None:
        raise ConfigurationError("Missing 'version' field in configuration")
    if version != SUPPORTED_VERSION:
        raise ConfigurationError(f"Configuration version {SUPPORTED_VERSION} required, got: {version}")

    swarm = config.get("swarm")
    if not isinstance(swarm, dict):
        raise ConfigurationError("Missing 'swarm' field in configuration")
    for key in ("name", "agents"):
        if not swarm.get(key):
            raise ConfigurationError(f"Missing '{key}' field in swarm configuration")
    if not isinstance(swarm["agents"], dict):
        raise ConfigurationError("'agents' must be a mapping of agent name to settings")

    all_agents = dict(swarm.get("all_agents") or {})
    all_agents_hooks = dict(all_agents.pop("hooks", None) or {})

    mcp_config = swarm.get("mcp_servers") or {}
    if mcp_config and "servers" not in mcp_config:
        mcp_config = {"servers": mcp_config}
    mcp_manager = MCPServerManager(mcp_config) if mcp_config else None

    if model_resolver is None:
        from swarmAgent.runtime.model_resolver import build_model_resolver
        model_resolver = build_model_resolver(settings)

    builder = _AgentBuilder(
        tools=tools or {},
        model_resolver=model_resolver,
        plugins=plugins,
        base_dir=base_dir,
        mcp_config=mcp_config,
        mcp_manager=mcp_manager,
    )
    agents = [
        builder.build(name, merge_agent_config(all_agents, agent_cfg or {}))
        for name, agent_cfg in swarm["agents"].items()
    ]
    detect_delegation_cycles({a.name: a.delegates_to for a in agents})

    nodes = [
        parse_node(name, node_cfg or {}, settings.hooks.transformer_timeout)
        for name, node_cfg in (swarm.get("nodes") or {}).items()
    ]

    lead = swarm.get("lead")
    if not nodes and not lead:
        raise ConfigurationError("Missing 'lead' field in swarm configuration")

    LOGGER.info(f"✓ Loaded swarm definition: {swarm['name']} ({len(agents)} agents, {len(nodes)} nodes)")
    return SwarmDefinition(
        name=swarm["name"],
        lead=lead,
        agents=agents,
        hooks=dict(swarm.get("hooks") or {}),
        all_agents_hooks=all_agents_hooks,
        nodes=nodes,
        start_node=swarm.get("start_node"),
        mcp_manager=mcp_manager,
        global_concurrency=swarm.get("global_concurrency"),
        local_concurrency=swarm.get("local_concurrency"),
        settings=settings,
    )


# ========== Helpers ==========


def interpolate_env_vars(value: Any) -> Any:
    """Expand ``${VAR}`` / ``${VAR:=default}`` recursively.

    Raises:
        ConfigurationError: A referenced variable is unset and has no default
    """
    if isinstance(value, str):
        def _sub(match: "re.Match[str]") -> str:
            name, has_default, default = match.group(1), match.group(2), match.group(3)
            if name in os.environ:
                return os.environ[name]
            if has_default:
                return default or ""
            raise ConfigurationError(f"Environment variable '{name}' is not set")
        return _ENV_VAR_PATTERN.sub(_sub, value)
    if isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [interpolate_env_vars(v) for v in value]
    return value


def merge_agent_config(all_agents: Mapping[str, Any], agent_cfg: Mapping[str, Any]) -> Dict[str, Any]:
    """Apply ``all_agents`` defaults: lists concatenate, mappings merge, scalars override."""
    merged = dict(all_agents)
    for key, value in agent_cfg.items():
        if key in ("tools", "delegates_to", "mcp_servers"):
            merged[key] = list(merged.get(key) or []) + list(value or [])
        elif key in ("permissions", "pricing") and isinstance(value, dict):
            merged[key] = {**(merged.get(key) or {}), **value}
        else:
            merged[key] = value
    return merged


def detect_delegation_cycles(graph: Mapping[str, Any]) -> None:
    """Reject ``a → b → … → a`` delegation chains."""
    visited: set = set()

    def visit(name: str, path: List[str]) -> None:
        if name in path:
            raise CircularDependencyError(path[path.index(name):])
        if name in visited:
            return
        for target in graph.get(name, ()):
            if target not in graph:
                raise ConfigurationError(f"Agent '{name}' delegates to unknown agent '{target}'")
            visit(target, [*path, name])
        visited.add(name)

    for agent_name in graph:
        visit(agent_name, [])


def parse_node(name: str, cfg: Mapping[str, Any], default_timeout: float):
    from swarmAgent.workflow.node import StageNode

    node = StageNode(name)
    for entry in cfg.get("agents") or []:
        if isinstance(entry, str):
            node.agent(entry)
        elif isinstance(entry, dict) and "name" in entry:
            node.agent(entry["name"]).delegates_to(*(entry.get("delegates_to") or []))
        elif isinstance(entry, dict) and len(entry) == 1:
            agent_name, delegates = next(iter(entry.items()))
            node.agent(agent_name).delegates_to(*(delegates or []))
        else:
            raise ConfigurationError(f"Node '{name}' has an invalid agent entry: {entry!r}")

    node.depends_on(*(cfg.get("depends_on") or []))
    if cfg.get("lead"):
        node.lead(cfg["lead"])

    for phase in ("input", "output"):
        command = cfg.get(f"{phase}_command")
        if not command:
            continue
        if isinstance(command, dict):
            timeout = float(command.get("timeout", default_timeout))
            command = command.get("command")
        else:
            timeout = default_timeout
        if not command:
            raise ConfigurationError(f"Node '{name}' {phase}_command needs a command")
        getattr(node, f"{phase}_command")(command, timeout=timeout)
    return node


class _AgentBuilder:
    """Turns one merged agent mapping into an ``AgentDefinition``."""

    def __init__(
        self,
        *,
        tools: ToolCatalog,
        model_resolver: Callable[..., Any],
        plugins: PluginRegistry,
        base_dir: Path,
        mcp_config: Mapping[str, Any],
        mcp_manager: Any,
    ):
        self.tools = tools
        self.model_resolver = model_resolver
        self.plugins = plugins
        self.base_dir = base_dir
        self.mcp_config = mcp_config
        self.mcp_manager = mcp_manager

    def build(self, name: str, cfg: Mapping[str, Any]):
        from swarmAgent.runtime.schema import AgentDefinition, ModelPricing

        directory = Path(cfg.get("directory") or ".")
        if not directory.is_absolute():
            directory = (self.base_dir / directory).resolve()

        pricing = cfg.get("pricing")
        if isinstance(pricing, dict):
            pricing = ModelPricing(
                input_per_million=float(pricing.get("input", 0.0)),
                output_per_million=float(pricing.get("output", 0.0)),
            )

        model_kwargs = {k: cfg[k] for k in ("base_url", "api_key", "temperature") if cfg.get(k) is not None}
        definition = AgentDefinition(
            name=name,
            model=self.model_resolver(cfg.get("model"), **model_kwargs),
            description=cfg.get("description") or "",
            system_prompt=cfg.get("system_prompt") or cfg.get("prompt"),
            delegates_to=_dedupe(cfg.get("delegates_to") or []),
            directory=str(directory),
            permissions=_permissions(cfg.get("permissions")),
            max_concurrent_tools=cfg.get("max_concurrent_tools"),
            context_window=cfg.get("context_window"),
            pricing=pricing,
            hooks=cfg.get("hooks"),
        )

        resolved = [self._resolve_tool(name, t, definition) for t in _dedupe(cfg.get("tools") or [])]
        resolved.extend(self._mcp_tools(name, _dedupe(cfg.get("mcp_servers") or [])))
        return replace(definition, tools=tuple(resolved))

    def _resolve_tool(self, agent_name: str, tool_name: str, definition) -> BaseTool:
        if tool_name in self.tools:
            return self.tools[tool_name]
        plugin = self.plugins.plugin_for_tool(tool_name)
        if plugin is not None:
            return plugin.create_tool(tool_name, definition)
        raise ConfigurationError(f"Agent '{agent_name}' uses unknown tool '{tool_name}'")

    def _mcp_tools(self, agent_name: str, server_ids: List[str]) -> List[BaseTool]:
        if not server_ids:
            return []
        from swarmAgent.tools.mcp import load_mcp_tools

        servers = self.mcp_config.get("servers") or {}
        missing = [s for s in server_ids if s not in servers]
        if missing:
            raise ConfigurationError(f"Agent '{agent_name}' uses undeclared MCP servers: {', '.join(missing)}")

        subset = {**self.mcp_config, "servers": {s: servers[s] for s in server_ids}}
        return load_mcp_tools(subset, self.mcp_manager)


def _permissions(value: Any) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigurationError("'permissions' must be a mapping")
    return dict(value)


def _dedupe(items: List[Any]) -> List[Any]:
    return list(dict.fromkeys(items))
