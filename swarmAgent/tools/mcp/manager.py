"""MCP server lifecycle manager with lazy startup."""

import asyncio
import logging
from typing import Any, Dict, List

from .connection import MCPConnection, create_connection

LOGGER = logging.getLogger(__name__)


class MCPServerManager:
    """
    Owns the MCP connections of a swarm.

    - Servers start on first use (first tool call or tool discovery)
    - ``shutdown`` closes every started server; the swarm calls it after
      each execution and servers restart lazily on the next one
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: ``{"servers": {server_id: {...}}, "settings": {...}}``
        """
        self.config = config or {}
        self.settings = self.config.get("settings") or {}
        self._servers: Dict[str, MCPConnection] = {}
        self._server_configs: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

        for server_id, server_cfg in (self.config.get("servers") or {}).items():
            if server_cfg.get("enabled", True):
                self._server_configs[server_id] = server_cfg
                LOGGER.debug(f"  Registered MCP server config: {server_id}")

    async def get_server(self, server_id: str) -> MCPConnection:
        """
        Return the connection for ``server_id``, starting it if needed.

        Raises:
            ValueError: Server not configured
            RuntimeError: Server failed to start
        """
        if server_id in self._servers:
            return self._servers[server_id]
        if server_id not in self._server_configs:
            raise ValueError(f"MCP server not configured: {server_id}")

        # Concurrent tool calls must not spawn the same server twice
        async with self._lock:
            if server_id not in self._servers:
                LOGGER.info(f"🚀 Starting MCP server: {server_id}")
                self._servers[server_id] = await self._start_server(server_id)
        return self._servers[server_id]

    async def _start_server(self, server_id: str) -> MCPConnection:
        cfg = dict(self._server_configs[server_id])
        cfg.setdefault("type", self.settings.get("default_connection_mode", "stdio"))
        connection = create_connection(server_id, cfg)
        startup_timeout = self.settings.get("startup_timeout", 30)

        try:
            await asyncio.wait_for(connection.start(), timeout=startup_timeout)
        except asyncio.TimeoutError:
            await connection.close()
            raise RuntimeError(f"MCP server startup timeout: {server_id}")
        except Exception as e:
            raise RuntimeError(f"Failed to start MCP server '{server_id}': {e}") from e

        LOGGER.info(f"  ✓ MCP server started: {server_id} (mode: {cfg['type']})")
        return connection

    async def shutdown(self) -> None:
        """Close every started server."""
        if not self._servers:
            return

        LOGGER.info(f"Shutting down {len(self._servers)} MCP server(s)...")
        for server_id, connection in list(self._servers.items()):
            try:
                await connection.close()
                LOGGER.info(f"  ✓ Closed: {server_id}")
            except Exception as e:
                LOGGER.error(f"  ✗ Failed to close {server_id}: {e}")
        self._servers.clear()

    def server_config(self, server_id: str) -> Dict[str, Any]:
        return dict(self._server_configs.get(server_id) or {})

    def is_server_started(self, server_id: str) -> bool:
        return server_id in self._servers

    def list_configured_servers(self) -> List[str]:
        return list(self._server_configs)

    def list_started_servers(self) -> List[str]:
        return list(self._servers)
