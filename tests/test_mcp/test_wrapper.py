"""MCP tool wrapper behavior against fake connections."""

import pytest

from swarmAgent.tools.mcp import MCPServerManager, MCPToolWrapper


def _wrapper(manager, **kwargs):
    return MCPToolWrapper(
        server_id="github",
        tool_name="gh_search",
        original_tool_name="search",
        description="Search issues",
        manager=manager,
        **kwargs,
    )


class TestMCPToolWrapper:

    @pytest.mark.asyncio
    async def test_call_starts_server_and_forwards_arguments(self, mcp_config, fake_connections):
        manager = MCPServerManager(mcp_config)
        tool = _wrapper(manager, input_schema={
            "type": "object",
            "properties": {"query": {"type": "string"}},
            "required": ["query"],
        })

        output = await tool.ainvoke({"query": "bug"})

        assert output == "search -> {'query': 'bug'}"
        (connection,) = fake_connections
        assert connection.calls == [("search", {"query": "bug"})]

    @pytest.mark.asyncio
    async def test_failure_comes_back_as_error_text(self, mcp_config, fake_connections):
        mcp_config["servers"]["github"]["fail_start"] = True
        tool = _wrapper(MCPServerManager(mcp_config))

        output = await tool._arun(query="bug")

        assert output.startswith("Error: MCP tool execution failed")
        assert "gh_search" in output

    def test_sync_invocation_not_supported(self, mcp_config):
        tool = _wrapper(MCPServerManager(mcp_config))

        with pytest.raises(NotImplementedError):
            tool._run(query="bug")
