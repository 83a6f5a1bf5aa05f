"""Agent definition schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from langchain_core.tools import BaseTool


@dataclass(frozen=True, slots=True)
class ModelPricing:
    """USD per million tokens."""

    input_per_million: float = 0.0
    output_per_million: float = 0.0

    def input_cost(self, tokens: int) -> float:
        return tokens * self.input_per_million / 1_000_000

    def output_cost(self, tokens: int) -> float:
        return tokens * self.output_per_million / 1_000_000


@dataclass(frozen=True)
class AgentDefinition:
    """Static description of one agent in a swarm.

    Attributes:
        name: Unique agent name (also used for its delegation tool name)
        model: LangChain chat model; must support ``bind_tools`` when the
            agent has tools or delegates
        description: Shown to callers in the delegation tool description
        system_prompt: Prepended to every model request
        tools: Concrete tools available to the agent
        delegates_to: Names of agents this one may delegate to
        directory: Working directory; relative permission patterns resolve here
        permissions: ``allowed_paths`` / ``denied_paths`` /
            ``allowed_commands`` / ``denied_commands`` lists
        max_concurrent_tools: Per-turn tool concurrency (None → swarm default)
        context_window: Token budget used for context warnings
        pricing: Optional per-token pricing for cost accounting
        hooks: Declarative hook config applied to this agent only
    """

    name: str
    model: Any
    description: str = ""
    system_prompt: Optional[str] = None
    tools: Tuple[BaseTool, ...] = ()
    delegates_to: Tuple[str, ...] = ()
    directory: str = "."
    permissions: Optional[Mapping[str, Any]] = None
    max_concurrent_tools: Optional[int] = None
    context_window: Optional[int] = None
    pricing: Optional[ModelPricing] = None
    hooks: Optional[Mapping[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Accept lists for convenience, store tuples
        object.__setattr__(self, "tools", tuple(self.tools or ()))
        object.__setattr__(self, "delegates_to", tuple(self.delegates_to or ()))

    @property
    def model_name(self) -> str:
        for attr in ("model_name", "model", "model_id"):
            value = getattr(self.model, attr, None)
            if isinstance(value, str) and value:
                return value
        return type(self.model).__name__

    def tool_names(self) -> List[str]:
        return [t.name for t in self.tools]
