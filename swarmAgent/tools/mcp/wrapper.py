"""LangChain ``BaseTool`` wrapper around one MCP server tool."""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from langchain_core.tools import BaseTool
from pydantic import Field

if TYPE_CHECKING:
    from .manager import MCPServerManager

LOGGER = logging.getLogger(__name__)


class MCPToolWrapper(BaseTool):
    """
    Calls ``original_tool_name`` on ``server_id`` through the manager.

    The server starts on the first call. Failures come back as error text
    so the calling model can react to them.
    """

    server_id: str = Field(description="MCP server identifier")
    original_tool_name: str = Field(description="Tool name on the MCP server")
    manager: Any = Field(description="MCPServerManager instance", exclude=True)

    def __init__(
        self,
        server_id: str,
        tool_name: str,
        original_tool_name: str,
        description: str,
        manager: "MCPServerManager",
        input_schema: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            server_id: MCP server identifier
            tool_name: Name exposed to the model (may be aliased or prefixed)
            original_tool_name: Tool name on the MCP server
            description: Tool description shown to the model
            manager: MCPServerManager owning the connection
            input_schema: JSON schema of the tool arguments, when known
        """
        kwargs: Dict[str, Any] = {}
        if input_schema:
            kwargs["args_schema"] = input_schema
        super().__init__(
            name=tool_name,
            description=description,
            server_id=server_id,
            original_tool_name=original_tool_name,
            manager=manager,
            **kwargs,
        )

    async def _arun(self, **kwargs: Any) -> str:
        kwargs.pop("run_manager", None)
        try:
            connection = await self.manager.get_server(self.server_id)
            LOGGER.debug(
                f"Executing MCP tool: {self.name} "
                f"(server: {self.server_id}, tool: {self.original_tool_name})"
            )
            return await connection.call_tool(self.original_tool_name, kwargs)
        except Exception as e:
            error_msg = (
                f"Error: MCP tool execution failed\n"
                f"  Tool: {self.name}\n"
                f"  Server: {self.server_id}\n"
                f"  Error: {e}"
            )
            LOGGER.error(error_msg)
            return error_msg

    def _run(self, **kwargs: Any) -> str:
        raise NotImplementedError(f"MCP tool {self.name} only supports async invocation")
