"""Fixtures for MCP tests."""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


class FakeConnection:
    """In-memory stand-in for an MCP connection."""

    instances = []

    def __init__(self, server_id, config):
        self.server_id = server_id
        self.config = config
        self.started = 0
        self.closed = 0
        self.calls = []
        FakeConnection.instances.append(self)

    async def start(self):
        if self.config.get("fail_start"):
            raise OSError("command not found")
        self.started += 1

    async def close(self):
        self.closed += 1

    async def call_tool(self, tool_name, arguments):
        self.calls.append((tool_name, arguments))
        return f"{tool_name} -> {arguments}"

    async def list_tools(self):
        return [
            SimpleNamespace(name="search", description="Search issues", inputSchema={"type": "object"}),
            SimpleNamespace(name="delete", description=None, inputSchema=None),
        ]


@pytest.fixture
def fake_connections(monkeypatch):
    """Route ``create_connection`` in the manager to FakeConnection."""
    from swarmAgent.tools.mcp import manager as manager_module

    FakeConnection.instances = []
    monkeypatch.setattr(manager_module, "create_connection", FakeConnection)
    return FakeConnection.instances


@pytest.fixture
def mcp_config():
    return {
        "servers": {
            "github": {
                "command": "github-mcp",
                "tools": {
                    "search": {"alias": "gh_search", "description": "Search GitHub issues"},
                    "delete": {"enabled": False},
                    "comment": None,
                },
            },
            "legacy": {"command": "legacy-mcp", "enabled": False, "tools": {"ping": {}}},
        },
        "settings": {"namespace_strategy": "alias", "startup_timeout": 5},
    }


@pytest.fixture
def notes_server_config():
    """Configuration for the real stdio test server."""
    server = Path(__file__).parent.parent / "mcp_servers" / "notes_server.py"
    return {
        "servers": {
            "notes": {
                "command": sys.executable,
                "args": [str(server)],
                "tools": {"echo": {"alias": "notes_echo"}, "word_count": {}, "fail": {}},
            },
        },
        "settings": {"startup_timeout": 30},
    }
