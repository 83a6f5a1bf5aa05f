"""Offline stand-ins for chat models used across the test suite."""

import asyncio
from typing import Any, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field


def reply(content: str = "", tool_calls: Optional[List[dict]] = None, input_tokens: int = 10, output_tokens: int = 5) -> AIMessage:
    """Build an AIMessage with usage metadata (and optional tool calls)."""
    calls = [
        {"name": c["name"], "args": c.get("args", {}), "id": c.get("id", f"call_{i}"), "type": "tool_call"}
        for i, c in enumerate(tool_calls or [])
    ]
    return AIMessage(
        content=content,
        tool_calls=calls,
        usage_metadata={
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
        },
    )


def call(name: str, call_id: str = "call_0", **args: Any) -> dict:
    return {"name": name, "args": args, "id": call_id}


class ConcurrencyTracker:
    """Counts simultaneous in-flight model requests."""

    def __init__(self):
        self.current = 0
        self.peak = 0

    def enter(self) -> None:
        self.current += 1
        self.peak = max(self.peak, self.current)

    def exit(self) -> None:
        self.current -= 1


class ScriptedChatModel(BaseChatModel):
    """Returns scripted replies in order, then ``default_reply`` forever.

    Script items may be strings, AIMessages or callables taking the request
    messages. Every request is recorded in ``calls``.
    """

    script: List[Any] = Field(default_factory=list)
    default_reply: str = "done"
    delay: float = 0.0
    calls: List[List[BaseMessage]] = Field(default_factory=list)
    model_name: str = "scripted-model"
    tracker: Any = None
    fail_with: Any = None

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        return self

    def _next_message(self, messages: List[BaseMessage]) -> AIMessage:
        self.calls.append(list(messages))
        if self.fail_with is not None:
            raise self.fail_with
        item = self.script.pop(0) if self.script else self.default_reply
        if callable(item):
            item = item(messages)
        if isinstance(item, str):
            item = reply(item)
        # Fresh copy: the chat model layer assigns message ids in place
        return item.model_copy(update={"id": None})

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return ChatResult(generations=[ChatGeneration(message=self._next_message(messages))])

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        if self.tracker is not None:
            self.tracker.enter()
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            message = self._next_message(messages)
        finally:
            if self.tracker is not None:
                self.tracker.exit()
        return ChatResult(generations=[ChatGeneration(message=message)])

    @property
    def prompts(self) -> List[str]:
        """Content of the last message of every request."""
        return [str(msgs[-1].content) for msgs in self.calls]
