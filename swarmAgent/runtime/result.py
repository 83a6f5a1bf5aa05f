"""Execution result with usage aggregation over the event log."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from swarmAgent.utils.error_handler import format_exception


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execution or workflow stage.

    ``logs`` is the append-only event log captured when the result was built.
    Usage totals are derived from it rather than stored.
    """

    content: Optional[str]
    agent: str
    duration: float = 0.0
    logs: Tuple[Dict[str, Any], ...] = ()
    error: Optional[BaseException] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def failure(self) -> bool:
        return self.error is not None

    @property
    def total_cost(self) -> float:
        """Last input cost plus every output cost.

        Each request's input cost already includes the whole conversation so
        far, so summing per-request totals would count history repeatedly.
        """
        priced = [e["usage"] for e in self.logs if _usage(e).get("total_cost") is not None]
        if not priced:
            return 0.0
        last_input = priced[-1].get("input_cost") or 0.0
        return last_input + sum(u.get("output_cost") or 0.0 for u in priced)

    @property
    def total_tokens(self) -> int:
        for entry in reversed(self.logs):
            value = _usage(entry).get("cumulative_total_tokens")
            if value is not None:
                return int(value)
        return 0

    @property
    def agents_involved(self) -> List[str]:
        seen: Dict[str, None] = {}
        for entry in self.logs:
            agent = entry.get("agent")
            if agent:
                seen.setdefault(str(agent), None)
        return list(seen)

    @property
    def llm_requests(self) -> int:
        return sum(1 for e in self.logs if e.get("type") in ("agent_step", "agent_stop"))

    @property
    def tool_calls_count(self) -> int:
        return sum(1 for e in self.logs if e.get("type") == "tool_call")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "agent": self.agent,
            "success": self.success,
            "error": format_exception(self.error) if self.error else None,
            "duration": self.duration,
            "total_cost": self.total_cost,
            "total_tokens": self.total_tokens,
            "agents_involved": self.agents_involved,
            "llm_requests": self.llm_requests,
            "tool_calls_count": self.tool_calls_count,
            "metadata": self.metadata,
        }

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str, **kwargs)


def _usage(entry: Dict[str, Any]) -> Dict[str, Any]:
    usage = entry.get("usage")
    return usage if isinstance(usage, dict) else {}
