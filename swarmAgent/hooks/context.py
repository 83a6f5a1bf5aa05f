"""Typed context handed to every hook invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .events import SWARM_LEVEL_EVENTS, HookEvent


@dataclass(frozen=True, slots=True)
class ToolCall:
    id: str
    name: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResult:
    tool_call_id: str
    tool_name: str
    content: str
    success: bool = True
    error: Optional[str] = None


@dataclass(slots=True)
class HookContext:
    """What a hook sees about the event that fired it.

    ``swarm`` is the owning execution engine (or None for standalone tests).
    ``metadata`` carries event-specific values such as ``prompt``,
    ``task``, ``usage`` or ``duration``.
    """

    event: HookEvent
    agent_name: Optional[str] = None
    swarm: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    tool_call: Optional[ToolCall] = None
    tool_result: Optional[ToolResult] = None
    delegation_target: Optional[str] = None
    delegation_result: Optional[str] = None

    @property
    def tool_name(self) -> Optional[str]:
        if self.tool_call is not None:
            return self.tool_call.name
        if self.tool_result is not None:
            return self.tool_result.tool_name
        return None

    @property
    def swarm_name(self) -> Optional[str]:
        return getattr(self.swarm, "name", None)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the event for external-command hooks (one JSON object)."""
        meta = self.metadata
        event = self.event

        if event in SWARM_LEVEL_EVENTS:
            payload: Dict[str, Any] = {"event": event.value, "swarm": self.swarm_name}
            if event is HookEvent.SWARM_START:
                payload["prompt"] = meta.get("prompt")
            else:
                payload.update(
                    success=meta.get("success"),
                    duration=meta.get("duration"),
                    total_cost=meta.get("total_cost"),
                    total_tokens=meta.get("total_tokens"),
                    content=meta.get("content"),
                )
            return payload

        payload = {"event": event.value, "agent": self.agent_name, "swarm": self.swarm_name}

        if event is HookEvent.PRE_TOOL_USE and self.tool_call is not None:
            payload.update(tool=self.tool_call.name, parameters=self.tool_call.parameters)
        elif event is HookEvent.POST_TOOL_USE and self.tool_result is not None:
            payload.update(
                tool=self.tool_result.tool_name,
                result=self.tool_result.content,
                success=self.tool_result.success,
                tool_call_id=self.tool_result.tool_call_id,
            )
        elif event is HookEvent.PRE_DELEGATION:
            payload.update(delegation_target=self.delegation_target, task=meta.get("task"))
        elif event is HookEvent.POST_DELEGATION:
            payload.update(
                delegation_target=self.delegation_target,
                task=meta.get("task"),
                result=self.delegation_result,
            )
        elif event is HookEvent.USER_PROMPT:
            payload.update(prompt=meta.get("prompt"), message_count=meta.get("message_count"))
        elif event is HookEvent.AGENT_STEP:
            payload.update(
                content=meta.get("content"),
                tool_calls=meta.get("tool_calls"),
                finish_reason=meta.get("finish_reason"),
                usage=meta.get("usage"),
            )
        elif event is HookEvent.AGENT_STOP:
            payload.update(
                content=meta.get("content"),
                finish_reason=meta.get("finish_reason"),
                usage=meta.get("usage"),
            )
        elif event is HookEvent.FIRST_MESSAGE:
            payload["prompt"] = meta.get("prompt")
        elif event is HookEvent.CONTEXT_WARNING:
            payload.update(
                threshold=meta.get("threshold"),
                percentage=meta.get("percentage"),
                tokens_used=meta.get("tokens_used"),
                tokens_remaining=meta.get("tokens_remaining"),
            )
        return payload
