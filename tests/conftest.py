"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def settings():
    """Fresh settings with default logging hooks enabled."""
    from swarmAgent.config.settings import RuntimeSettings, Settings

    return Settings(runtime=RuntimeSettings(recursion_limit=50, default_logging_hooks=True))


@pytest.fixture
def plugins():
    """Isolated plugin registry (the process-wide default is never touched)."""
    from swarmAgent.plugins import PluginRegistry

    registry = PluginRegistry()
    yield registry
    registry.clear()


@pytest.fixture
def make_swarm(settings, plugins):
    """Build a Swarm with isolated settings and plugins."""
    from swarmAgent.runtime import Swarm

    def _make(agents, lead=None, **kwargs):
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("plugins", plugins)
        return Swarm(kwargs.pop("name", "test-swarm"), agents, lead, **kwargs)

    return _make


@pytest.fixture
def write_script(tmp_path):
    """Write an executable shell script and return the command running it."""
    def _write(name: str, body: str) -> str:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n", encoding="utf-8")
        path.chmod(0o755)
        return f"sh {path}"

    return _write
