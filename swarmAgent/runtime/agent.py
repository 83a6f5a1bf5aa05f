"""Per-agent turn loop: model call → tool calls → model call … → answer.

Each agent runs as a compiled LangGraph ``StateGraph``::

    START → agent ──(tool calls?)──→ tools ─┐
              ↑                             │
              └─────────────────────────────┘
              └──(no tool calls)──→ END

Model requests hold the engine's global semaphore. Tool calls from one model
turn run concurrently under the agent's own semaphore.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional, Sequence, Set

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END, START, StateGraph

from swarmAgent.hooks import HookContext, HookEvent, ToolCall, ToolResult
from swarmAgent.permissions import PermissionValidator
from swarmAgent.utils.error_handler import format_exception
from swarmAgent.utils.logging_utils import log_tool_call, log_tool_result

from .delegation import DelegateTool
from .schema import AgentDefinition
from .state import AgentState

if TYPE_CHECKING:
    from .swarm import Swarm

LOGGER = logging.getLogger(__name__)

# Percent of the context window at which context_warning fires (once each)
CONTEXT_WARNING_THRESHOLDS = (80, 90)


def stringify_content(content: Any) -> str:
    if isinstance(content, list):
        pieces: List[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                pieces.append(str(item["text"]))
            elif isinstance(item, str):
                pieces.append(item)
        return "\n".join(pieces)
    if content is None:
        return ""
    return str(content)


def stringify_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    if isinstance(output, BaseMessage):
        return stringify_content(output.content)
    if isinstance(output, (dict, list)):
        return json.dumps(output, ensure_ascii=False, default=str)
    if output is None:
        return ""
    return str(output)


class AgentRunner:
    """Runs one agent's conversation inside an engine.

    Conversation history persists across ``ask`` calls on the same runner.
    """

    def __init__(
        self,
        definition: AgentDefinition,
        engine: "Swarm",
        tools: Sequence[BaseTool],
        validator: Optional[PermissionValidator],
        max_concurrent_tools: int,
        recursion_limit: int,
        context_window: Optional[int] = None,
    ):
        self.definition = definition
        self.name = definition.name
        self.engine = engine
        self.tools = list(tools)
        self.validator = validator
        self.recursion_limit = recursion_limit
        self.context_window = context_window
        self.max_concurrent_tools = max_concurrent_tools
        self.messages: List[BaseMessage] = []

        self._tools_by_name: Dict[str, BaseTool] = {t.name: t for t in self.tools}
        self._tool_semaphore = asyncio.Semaphore(max_concurrent_tools)
        self._model = definition.model.bind_tools(self.tools) if self.tools else definition.model
        self._graph = self._build_graph()

        self.cumulative_input_tokens = 0
        self.cumulative_output_tokens = 0
        self._warned_thresholds: Set[int] = set()

    # ========== Public API ==========

    @property
    def delegate_names(self) -> List[str]:
        return [t.target for t in self.tools if isinstance(t, DelegateTool)]

    @property
    def cumulative_total_tokens(self) -> int:
        return self.cumulative_input_tokens + self.cumulative_output_tokens

    async def ask(self, prompt: str) -> str:
        """Send ``prompt`` as a user message and run until the model answers."""
        is_first = not self.messages

        decision = await self.engine.hook_executor.execute(HookContext(
            event=HookEvent.USER_PROMPT,
            agent_name=self.name,
            swarm=self.engine,
            metadata={
                "prompt": prompt,
                "message_count": len(self.messages),
                "model": self.definition.model_name,
                "tools": [n for n in self._tools_by_name if n not in self._delegate_tool_names()],
                "delegates_to": self.delegate_names,
            },
        ))

        if decision.is_halt:
            reply = stringify_output(decision.value)
            LOGGER.info(f"[{self.name}] user_prompt halted by hook")
            self.engine.emit_halt(HookEvent.USER_PROMPT, self.name, decision.value)
            self.messages = [*self.messages, HumanMessage(content=prompt), AIMessage(content=reply)]
            return reply
        if decision.is_replace and decision.value is not None:
            prompt = stringify_output(decision.value)

        reminders = await self.engine.plugins.collect_reminders(self.name, prompt, is_first)
        if reminders:
            prompt = prompt + "".join(f"\n\n<system-reminder>\n{r}\n</system-reminder>" for r in reminders)

        state = await self._graph.ainvoke(
            {"messages": [*self.messages, HumanMessage(content=prompt)]},
            config={"recursion_limit": self.recursion_limit},
        )
        self.messages = list(state["messages"])
        return stringify_content(self.messages[-1].content)

    def reset_permits(self) -> None:
        self._tool_semaphore = asyncio.Semaphore(self.max_concurrent_tools)

    def reset(self) -> None:
        self.messages = []
        self.cumulative_input_tokens = 0
        self.cumulative_output_tokens = 0
        self._warned_thresholds.clear()

    # ========== Graph ==========

    def _build_graph(self):
        graph = StateGraph(AgentState)
        graph.add_node("agent", self._call_model)
        graph.add_node("tools", self._run_tools)
        graph.add_edge(START, "agent")
        graph.add_conditional_edges("agent", self._route, {"tools": "tools", END: END})
        graph.add_edge("tools", "agent")
        return graph.compile()

    @staticmethod
    def _route(state: AgentState) -> Literal["tools", "__end__"]:
        messages = state.get("messages", [])
        if messages and getattr(messages[-1], "tool_calls", None):
            return "tools"
        return END

    async def _call_model(self, state: AgentState) -> AgentState:
        messages = list(state["messages"])
        if self.definition.system_prompt:
            messages = [SystemMessage(content=self.definition.system_prompt), *messages]

        async with self.engine.global_semaphore:
            response = await self._model.ainvoke(messages)

        usage = self._record_usage(response)
        tool_calls = [
            {"id": c.get("id"), "name": c.get("name"), "arguments": c.get("args") or {}}
            for c in (getattr(response, "tool_calls", None) or [])
        ]
        finish_reason = (getattr(response, "response_metadata", None) or {}).get("finish_reason")

        await self.engine.hook_executor.execute(HookContext(
            event=HookEvent.AGENT_STEP if tool_calls else HookEvent.AGENT_STOP,
            agent_name=self.name,
            swarm=self.engine,
            metadata={
                "model": self.definition.model_name,
                "content": stringify_content(response.content),
                "tool_calls": tool_calls or None,
                "finish_reason": finish_reason or ("tool_calls" if tool_calls else "stop"),
                "usage": usage,
            },
        ))
        await self._check_context_window(usage)

        return {"messages": [response]}

    async def _run_tools(self, state: AgentState) -> AgentState:
        calls = list(getattr(state["messages"][-1], "tool_calls", None) or [])

        if len(calls) == 1:
            results = [await self._execute_tool_call(calls[0])]
        else:
            results = await asyncio.gather(*(self._execute_with_permit(c) for c in calls))

        return {"messages": list(results)}

    async def _execute_with_permit(self, call: Dict[str, Any]) -> ToolMessage:
        async with self._tool_semaphore:
            return await self._execute_tool_call(call)

    # ========== Tool execution ==========

    async def _execute_tool_call(self, call: Dict[str, Any]) -> ToolMessage:
        name = call.get("name") or ""
        args = call.get("args") or {}
        call_id = call.get("id") or ""
        tool = self._tools_by_name.get(name)

        if tool is None:
            LOGGER.warning(f"[{self.name}] Unknown tool requested: {name}")
            return _tool_message(call_id, name, f"Error: Tool '{name}' is not available to agent '{self.name}'", False)

        if isinstance(tool, DelegateTool):
            try:
                output = stringify_output(await tool.ainvoke(args))
            except Exception as e:
                LOGGER.error(f"[{self.name}] Delegation call {name} rejected: {e}")
                return _tool_message(call_id, name, f"Error: {format_exception(e)}", False)
            return _tool_message(call_id, name, output, not output.startswith("Error: "))

        executor = self.engine.hook_executor
        log_tool_call(LOGGER, self.name, name, args)
        tool_call = ToolCall(id=call_id, name=name, parameters=dict(args))

        pre = await executor.execute(HookContext(
            event=HookEvent.PRE_TOOL_USE, agent_name=self.name, swarm=self.engine, tool_call=tool_call,
        ))
        if pre.is_halt:
            self.engine.emit_halt(HookEvent.PRE_TOOL_USE, self.name, pre.value, tool=name)
            return _tool_message(call_id, name, stringify_output(pre.value) or f"Tool {name} blocked by hook", False)
        if pre.is_replace:
            return _tool_message(call_id, name, stringify_output(pre.value), True)

        denial = self.validator.check(name, args) if self.validator else None
        if denial is not None:
            content, success = denial, False
        else:
            try:
                content, success = stringify_output(await tool.ainvoke(args)), True
            except Exception as e:
                LOGGER.error(f"[{self.name}] Tool {name} raised {format_exception(e)}")
                content, success = f"Error: {format_exception(e)}", False

        log_tool_result(LOGGER, self.name, name, content, success)

        post = await executor.execute(HookContext(
            event=HookEvent.POST_TOOL_USE,
            agent_name=self.name,
            swarm=self.engine,
            tool_call=tool_call,
            tool_result=ToolResult(tool_call_id=call_id, tool_name=name, content=content, success=success),
        ))
        if post.is_replace:
            content = stringify_output(post.value)

        return _tool_message(call_id, name, content, success)

    def _delegate_tool_names(self) -> Set[str]:
        return {t.name for t in self.tools if isinstance(t, DelegateTool)}

    # ========== Usage ==========

    def _record_usage(self, response: AIMessage) -> Dict[str, Any]:
        meta = getattr(response, "usage_metadata", None) or {}
        input_tokens = int(meta.get("input_tokens") or 0)
        output_tokens = int(meta.get("output_tokens") or 0)

        # The latest request's input already covers the whole conversation;
        # outputs are per response and add up
        if input_tokens:
            self.cumulative_input_tokens = input_tokens
        self.cumulative_output_tokens += output_tokens

        pricing = self.definition.pricing
        input_cost = pricing.input_cost(input_tokens) if pricing else 0.0
        output_cost = pricing.output_cost(output_tokens) if pricing else 0.0

        usage: Dict[str, Any] = {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "input_cost": input_cost,
            "output_cost": output_cost,
            "total_cost": input_cost + output_cost,
            "cumulative_input_tokens": self.cumulative_input_tokens,
            "cumulative_output_tokens": self.cumulative_output_tokens,
            "cumulative_total_tokens": self.cumulative_total_tokens,
        }
        if self.context_window:
            used = self.cumulative_total_tokens
            usage["context_limit"] = self.context_window
            usage["tokens_used_percentage"] = round(used / self.context_window * 100, 2)
            usage["tokens_remaining"] = max(self.context_window - used, 0)
        return usage

    async def _check_context_window(self, usage: Dict[str, Any]) -> None:
        percentage = usage.get("tokens_used_percentage")
        if percentage is None:
            return
        for threshold in CONTEXT_WARNING_THRESHOLDS:
            if percentage < threshold or threshold in self._warned_thresholds:
                continue
            self._warned_thresholds.add(threshold)
            LOGGER.warning(f"[{self.name}] Context usage at {percentage}% (threshold {threshold}%)")
            await self.engine.hook_executor.execute(HookContext(
                event=HookEvent.CONTEXT_WARNING,
                agent_name=self.name,
                swarm=self.engine,
                metadata={
                    "threshold": threshold,
                    "percentage": percentage,
                    "tokens_used": usage["cumulative_total_tokens"],
                    "tokens_remaining": usage["tokens_remaining"],
                },
            ))


def _tool_message(call_id: str, name: str, content: str, success: bool) -> ToolMessage:
    return ToolMessage(
        content=content,
        tool_call_id=call_id,
        name=name,
        status="success" if success else "error",
    )
