"""MCP (Model Context Protocol) tools for swarm agents."""

from .connection import MCPConnection, SSEMCPConnection, StdioMCPConnection, create_connection
from .loader import discover_mcp_tools, load_mcp_config, load_mcp_tools, resolve_tool_name
from .manager import MCPServerManager
from .wrapper import MCPToolWrapper

__all__ = [
    "MCPConnection",
    "MCPServerManager",
    "MCPToolWrapper",
    "SSEMCPConnection",
    "StdioMCPConnection",
    "create_connection",
    "discover_mcp_tools",
    "load_mcp_config",
    "load_mcp_tools",
    "resolve_tool_name",
]
