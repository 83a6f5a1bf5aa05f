"""Plugin registry passed explicitly into each swarm."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Optional

from swarmAgent.utils.error_handler import ConfigurationError, ExecutionStateError

from .base import Plugin

LOGGER = logging.getLogger(__name__)


class PluginRegistry:
    """Registered plugins and the tools they provide.

    Lifecycle: register before ``freeze``; read-only while swarms run;
    ``clear`` resets everything for tests.
    """

    def __init__(self):
        self._plugins: Dict[str, Plugin] = {}
        self._tool_map: Dict[str, Plugin] = {}
        self._frozen = False

    def register(self, plugin: Plugin) -> Plugin:
        if self._frozen:
            raise ExecutionStateError("Plugin registry is frozen; register plugins before execution starts")
        if not isinstance(plugin, Plugin):
            raise ConfigurationError(f"Plugin must inherit from Plugin, got {type(plugin).__name__}")
        if not plugin.name:
            raise ConfigurationError(f"Plugin {type(plugin).__name__} has no name")
        if plugin.name in self._plugins:
            raise ConfigurationError(f"Plugin {plugin.name} already registered")

        for tool_name in plugin.tools():
            if tool_name in self._tool_map:
                raise ConfigurationError(
                    f"Tool {tool_name} already registered by plugin {self._tool_map[tool_name].name}"
                )
        for tool_name in plugin.tools():
            self._tool_map[tool_name] = plugin

        self._plugins[plugin.name] = plugin
        LOGGER.info(f"✓ Registered plugin: {plugin.name} ({len(plugin.tools())} tools)")
        return plugin

    def get(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def all(self) -> List[Plugin]:
        return list(self._plugins.values())

    def registered(self, name: str) -> bool:
        return name in self._plugins

    def plugin_for_tool(self, tool_name: str) -> Optional[Plugin]:
        return self._tool_map.get(tool_name)

    def tools(self) -> Dict[str, Plugin]:
        return dict(self._tool_map)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def clear(self) -> None:
        self._plugins.clear()
        self._tool_map.clear()
        self._frozen = False

    # ========== Events ==========

    async def emit_event(self, event: str, **kwargs: Any) -> List[Any]:
        """Call ``event`` on every plugin and collect the return values.

        A failing plugin is logged and skipped; lifecycle notifications never
        abort an execution.
        """
        results = []
        for plugin in self._plugins.values():
            handler = getattr(plugin, event, None)
            if handler is None:
                continue
            try:
                value = handler(**kwargs)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                LOGGER.warning(f"✗ Plugin {plugin.name} failed on {event}: {type(e).__name__}: {e}")
                continue
            results.append(value)
        return results

    async def collect_reminders(self, agent_name: str, prompt: str, is_first_message: bool) -> List[str]:
        reminders: List[str] = []
        for value in await self.emit_event(
            "on_user_message", agent_name=agent_name, prompt=prompt, is_first_message=is_first_message
        ):
            if isinstance(value, str):
                value = [value]
            reminders.extend(str(r) for r in (value or []) if r)
        return reminders


# Outermost convenience wiring only; swarms take a registry argument
default_plugin_registry = PluginRegistry()
