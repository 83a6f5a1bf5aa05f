"""MCP server connections (stdio and SSE transports).

Each connection keeps the ``mcp`` SDK context managers open inside one
dedicated task, so that it can be opened from a tool call and closed later
from the swarm's finalizer running in another task.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client

LOGGER = logging.getLogger(__name__)


def resolve_env(env: Dict[str, str]) -> Dict[str, str]:
    """Expand ``${VAR}`` references against the current environment."""
    resolved = {}
    for key, value in (env or {}).items():
        value = str(value)
        if value.startswith("${") and value.endswith("}"):
            resolved[key] = os.environ.get(value[2:-1], "")
        else:
            resolved[key] = value
    return resolved


def render_call_result(result: Any) -> str:
    """Join the text parts of a ``CallToolResult``."""
    parts = [item.text for item in (getattr(result, "content", None) or []) if hasattr(item, "text")]
    text = "\n".join(parts)
    if getattr(result, "isError", False):
        return f"Error: {text}" if text else "Error: MCP tool reported an error"
    return text


class MCPConnection(ABC):
    """One client session to one MCP server."""

    def __init__(self, server_id: str):
        self.server_id = server_id
        self._session: Optional[ClientSession] = None
        self._task: Optional[asyncio.Task] = None
        self._ready: Optional[asyncio.Event] = None
        self._closing: Optional[asyncio.Event] = None
        self._startup_error: Optional[BaseException] = None

    @property
    def initialized(self) -> bool:
        return self._session is not None

    @abstractmethod
    def _transport(self):
        """Async context manager yielding ``(read_stream, write_stream)``."""

    async def start(self) -> None:
        self._ready = asyncio.Event()
        self._closing = asyncio.Event()
        self._startup_error = None
        self._task = asyncio.create_task(self._serve(), name=f"mcp:{self.server_id}")
        await self._ready.wait()
        if self._startup_error is not None:
            error = self._startup_error
            await self.close()
            raise error
        LOGGER.debug(f"  ✓ MCP connection established for server: {self.server_id}")

    async def _serve(self) -> None:
        try:
            async with AsyncExitStack() as stack:
                read_stream, write_stream = await stack.enter_async_context(self._transport())
                session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
                await session.initialize()
                self._session = session
                self._ready.set()
                await self._closing.wait()
        except Exception as e:
            if not self._ready.is_set():
                self._startup_error = e
            else:
                LOGGER.warning(f"  MCP session for {self.server_id} ended with error: {e}")
        finally:
            self._session = None
            self._ready.set()

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        if self._session is None:
            raise RuntimeError(f"Server not initialized: {self.server_id}")
        LOGGER.debug(f"  Calling tool: {tool_name} on server {self.server_id}")
        result = await self._session.call_tool(tool_name, arguments)
        return render_call_result(result)

    async def list_tools(self) -> List[Any]:
        if self._session is None:
            raise RuntimeError(f"Server not initialized: {self.server_id}")
        result = await self._session.list_tools()
        return list(result.tools)

    async def close(self) -> None:
        if self._task is None:
            return
        self._closing.set()
        try:
            await asyncio.wait_for(self._task, timeout=10)
        except asyncio.TimeoutError:
            LOGGER.warning(f"  MCP session for {self.server_id} did not close in time, cancelling")
            self._task.cancel()
        self._task = None
        self._session = None
        LOGGER.debug(f"  ✓ Closed MCP connection for server: {self.server_id}")


class StdioMCPConnection(MCPConnection):
    """Server launched as a subprocess, spoken to over stdin/stdout."""

    def __init__(self, server_id: str, command: str, args: List[str], env: Dict[str, str]):
        super().__init__(server_id)
        self.command = command
        self.args = list(args or [])
        self.env = dict(env or {})

    def _transport(self):
        full_env = os.environ.copy()
        full_env.update(resolve_env(self.env))
        LOGGER.debug(f"  Starting stdio server: {self.command} {' '.join(self.args)}")
        return stdio_client(StdioServerParameters(command=self.command, args=self.args, env=full_env))


class SSEMCPConnection(MCPConnection):
    """Remote server reached over HTTP Server-Sent Events."""

    def __init__(self, server_id: str, url: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(server_id)
        self.url = url
        self.headers = dict(headers or {})

    def _transport(self):
        LOGGER.debug(f"  Connecting to SSE server: {self.url}")
        return sse_client(self.url, headers=resolve_env(self.headers) or None)


def create_connection(server_id: str, config: Dict[str, Any]) -> MCPConnection:
    """Build a connection from one ``mcp_servers`` entry."""
    mode = config.get("type") or config.get("connection_mode") or "stdio"
    if mode == "stdio":
        if not config.get("command"):
            raise ValueError(f"MCP server '{server_id}' needs a command")
        return StdioMCPConnection(server_id, config["command"], config.get("args", []), config.get("env", {}))
    if mode == "sse":
        if not config.get("url"):
            raise ValueError(f"MCP server '{server_id}' needs a url")
        return SSEMCPConnection(server_id, config["url"], config.get("headers"))
    raise ValueError(f"Unknown connection mode: {mode}")
