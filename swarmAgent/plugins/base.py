"""Plugin base class.

Plugins contribute tools and react to swarm lifecycle events. Their storage
and internal content are their own business; the engine only calls the
methods below.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

from langchain_core.tools import BaseTool

if TYPE_CHECKING:
    from swarmAgent.runtime.schema import AgentDefinition


class Plugin:
    """Override what you need; every hook has a no-op default."""

    name: str = ""

    def tools(self) -> List[str]:
        """Names of the tools this plugin can create."""
        return []

    def create_tool(self, tool_name: str, agent: "AgentDefinition") -> BaseTool:
        raise NotImplementedError(f"{type(self).__name__} must implement create_tool")

    def system_prompt_contribution(self, agent: "AgentDefinition") -> Optional[str]:
        return None

    # ========== Lifecycle ==========

    def on_agent_initialized(self, agent_name: str, runner: Any) -> None:
        pass

    def on_swarm_started(self, swarm: Any) -> None:
        pass

    def on_swarm_stopped(self, swarm: Any) -> None:
        pass

    def on_user_message(self, agent_name: str, prompt: str, is_first_message: bool) -> List[str]:
        """Return reminder texts to attach to the user message."""
        return []
