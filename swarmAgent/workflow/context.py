"""Context handed to workflow input/output transforms."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from swarmAgent.runtime.result import ExecutionResult

PreviousResult = Union[ExecutionResult, Mapping[str, ExecutionResult], str, None]


@dataclass(frozen=True)
class NodeContext:
    """What a transform can see about the workflow so far.

    For input transforms ``previous_result`` is the single dependency's
    result, a ``{name: result}`` mapping when the node has several
    dependencies, or the original prompt when it has none. For output
    transforms ``result`` is the node's own result.
    """

    original_prompt: str
    node_name: str
    all_results: Mapping[str, ExecutionResult] = field(default_factory=dict)
    dependencies: Tuple[str, ...] = ()
    previous_result: PreviousResult = None
    result: Optional[ExecutionResult] = None
    transformed_content: Optional[str] = None

    @classmethod
    def for_input(
        cls,
        *,
        previous_result: PreviousResult,
        all_results: Mapping[str, ExecutionResult],
        original_prompt: str,
        node_name: str,
        dependencies: List[str],
        transformed_content: Optional[str] = None,
    ) -> "NodeContext":
        return cls(
            original_prompt=original_prompt,
            node_name=node_name,
            all_results=dict(all_results),
            dependencies=tuple(dependencies),
            previous_result=previous_result,
            transformed_content=transformed_content,
        )

    @classmethod
    def for_output(
        cls,
        *,
        result: ExecutionResult,
        all_results: Mapping[str, ExecutionResult],
        original_prompt: str,
        node_name: str,
    ) -> "NodeContext":
        return cls(
            original_prompt=original_prompt,
            node_name=node_name,
            all_results=dict(all_results),
            result=result,
        )

    # ========== Convenience accessors ==========

    @property
    def _source(self) -> Optional[ExecutionResult]:
        if self.result is not None:
            return self.result
        if isinstance(self.previous_result, ExecutionResult):
            return self.previous_result
        return None

    @property
    def content(self) -> Optional[str]:
        """Content to transform. None when several dependencies feed the node."""
        if self.result is not None:
            return self.result.content
        if self.transformed_content is not None:
            return self.transformed_content
        if isinstance(self.previous_result, ExecutionResult):
            return self.previous_result.content
        if isinstance(self.previous_result, Mapping):
            return None
        return None if self.previous_result is None else str(self.previous_result)

    @property
    def agent(self) -> Optional[str]:
        source = self._source
        return source.agent if source else None

    @property
    def logs(self) -> Optional[Tuple[Dict[str, Any], ...]]:
        source = self._source
        return source.logs if source else None

    @property
    def duration(self) -> Optional[float]:
        source = self._source
        return source.duration if source else None

    @property
    def error(self) -> Optional[BaseException]:
        source = self._source
        return source.error if source else None

    @property
    def success(self) -> Optional[bool]:
        source = self._source
        return source.success if source else None

    def to_payload(self, event: str, fallback_content: Optional[str]) -> Dict[str, Any]:
        """JSON document sent to command transforms on stdin."""
        return {
            "event": event,
            "node": self.node_name,
            "original_prompt": self.original_prompt,
            "content": self.content if self.content is not None else fallback_content,
            "dependencies": list(self.dependencies),
            "all_results": {
                name: {
                    "content": r.content,
                    "agent": r.agent,
                    "duration": r.duration,
                    "success": r.success,
                }
                for name, r in self.all_results.items()
            },
        }
