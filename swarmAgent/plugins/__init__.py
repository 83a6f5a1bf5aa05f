"""Plugin lifecycle contract."""

from .base import Plugin
from .registry import PluginRegistry, default_plugin_registry

__all__ = ["Plugin", "PluginRegistry", "default_plugin_registry"]
