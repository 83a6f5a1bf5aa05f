"""MCP configuration loading and tool factories."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from langchain_core.tools import BaseTool

from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

LOGGER = logging.getLogger(__name__)


def load_mcp_config(config_path: Path) -> Dict[str, Any]:
    """
    Load an MCP configuration file.

    Raises:
        FileNotFoundError: File missing
        yaml.YAMLError: Invalid YAML
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"MCP config not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    return config or {"servers": {}, "settings": {}}


def load_mcp_tools(config: Dict[str, Any], manager: MCPServerManager) -> List[BaseTool]:
    """
    Create wrappers for the tools declared under ``servers.<id>.tools``.

    Servers are not started here.
    """
    tools: List[BaseTool] = []
    strategy = (config.get("settings") or {}).get("namespace_strategy", "alias")

    for server_id, server_cfg in (config.get("servers") or {}).items():
        if not server_cfg.get("enabled", True):
            LOGGER.debug(f"  Skipping disabled MCP server: {server_id}")
            continue

        tools_config = server_cfg.get("tools") or {}
        if not tools_config:
            LOGGER.debug(f"  No tools declared for MCP server {server_id}; use discover_mcp_tools")
            continue

        for tool_name, tool_cfg in tools_config.items():
            tool_cfg = tool_cfg or {}
            if not tool_cfg.get("enabled", True):
                LOGGER.debug(f"    Skipping disabled tool: {server_id}.{tool_name}")
                continue

            final_name = resolve_tool_name(server_id, tool_name, tool_cfg, strategy)
            tools.append(MCPToolWrapper(
                server_id=server_id,
                tool_name=final_name,
                original_tool_name=tool_name,
                description=tool_cfg.get("description", f"MCP tool '{tool_name}' from server '{server_id}'"),
                manager=manager,
                input_schema=tool_cfg.get("input_schema"),
            ))
            LOGGER.info(f"    ✓ Loaded MCP tool: {final_name} (server: {server_id})")

    return tools


async def discover_mcp_tools(
    manager: MCPServerManager,
    server_ids: Optional[List[str]] = None,
) -> List[BaseTool]:
    """
    Start servers and wrap every tool they report.

    Used for servers without a ``tools`` section.
    """
    strategy = manager.settings.get("namespace_strategy", "alias")
    tools: List[BaseTool] = []

    for server_id in server_ids or manager.list_configured_servers():
        server_cfg = manager.server_config(server_id)
        overrides = server_cfg.get("tools") or {}
        connection = await manager.get_server(server_id)

        for info in await connection.list_tools():
            tool_cfg = overrides.get(info.name) or {}
            if not tool_cfg.get("enabled", True):
                continue
            final_name = resolve_tool_name(server_id, info.name, tool_cfg, strategy)
            tools.append(MCPToolWrapper(
                server_id=server_id,
                tool_name=final_name,
                original_tool_name=info.name,
                description=tool_cfg.get("description") or info.description or f"MCP tool '{info.name}'",
                manager=manager,
                input_schema=getattr(info, "inputSchema", None),
            ))
        LOGGER.info(f"  ✓ Discovered {len(tools)} MCP tool(s) so far (server: {server_id})")

    return tools


def resolve_tool_name(server_id: str, tool_name: str, tool_cfg: Dict[str, Any], namespace_strategy: str) -> str:
    """Configured alias, then ``mcp__<server>__<tool>`` for the prefix strategy, else the original name."""
    if tool_cfg.get("alias"):
        return tool_cfg["alias"]
    if namespace_strategy == "prefix":
        return f"mcp__{server_id}__{tool_name}"
    return tool_name
