"""Configuration package exports."""

from .loader import SwarmDefinition, load_swarm_definition, parse_swarm_definition
from .settings import (
    ConcurrencySettings,
    HookSettings,
    ModelSettings,
    ObservabilitySettings,
    RuntimeSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ConcurrencySettings",
    "HookSettings",
    "ModelSettings",
    "ObservabilitySettings",
    "RuntimeSettings",
    "Settings",
    "SwarmDefinition",
    "get_settings",
    "load_swarm_definition",
    "parse_swarm_definition",
]
