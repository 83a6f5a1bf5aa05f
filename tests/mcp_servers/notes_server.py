#!/usr/bin/env python3
"""Stdio MCP server used by the MCP end-to-end tests.

Tools:
- echo: return the message
- word_count: count words in a text
- fail: always raise, reported back as an error result
"""

import asyncio
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

app = Server("notes-test-server")


@app.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="echo",
            description="Return the message unchanged",
            inputSchema={
                "type": "object",
                "properties": {"message": {"type": "string"}},
                "required": ["message"],
            },
        ),
        Tool(
            name="word_count",
            description="Count the words in a text",
            inputSchema={
                "type": "object",
                "properties": {"text": {"type": "string"}},
                "required": ["text"],
            },
        ),
        Tool(
            name="fail",
            description="Always fails",
            inputSchema={"type": "object", "properties": {}},
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    if name == "echo":
        return [TextContent(type="text", text=f"Echo: {arguments.get('message', '')}")]
    if name == "word_count":
        return [TextContent(type="text", text=str(len(str(arguments.get("text", "")).split())))]
    if name == "fail":
        raise RuntimeError("tool failed on purpose")
    raise ValueError(f"Unknown tool: {name}")


async def main():
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    asyncio.run(main())
