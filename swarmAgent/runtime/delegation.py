"""Delegation proxy tool: lets one agent hand a task to another."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Type

from langchain_core.tools import BaseTool
from pydantic import BaseModel, Field

LOGGER = logging.getLogger(__name__)


class DelegateTaskInput(BaseModel):
    task: str = Field(description="Self-contained task description for the delegate agent")


def delegation_tool_name(target: str) -> str:
    return f"DelegateTaskTo{target.capitalize()}"


class DelegateTool(BaseTool):
    """Run ``target``'s own cycle with the given task and return its answer.

    Hooks fired are ``pre_delegation`` / ``post_delegation`` (never the plain
    tool events); failures come back as ``Error: ...`` text. All of that is
    handled by ``engine.delegate``.
    """

    args_schema: Type[BaseModel] = DelegateTaskInput
    caller: str = Field(description="Agent that owns this tool")
    target: str = Field(description="Agent that receives the task")
    engine: Any = Field(default=None, exclude=True, description="Owning execution engine")

    def __init__(self, caller: str, target: str, engine: Any, target_description: str = ""):
        description = (
            f"Delegate a task to the '{target}' agent and wait for its answer."
            + (f" {target_description}" if target_description else "")
            + " The delegate cannot see your conversation, so include all required context in the task."
        )
        super().__init__(
            name=delegation_tool_name(target),
            description=description,
            caller=caller,
            target=target,
            engine=engine,
        )

    async def _arun(self, task: str, run_manager: Optional[Any] = None) -> str:
        return await self.engine.delegate(self.caller, self.target, task, tool_name=self.name)

    def _run(self, task: str, run_manager: Optional[Any] = None) -> str:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self._arun(task))
        raise RuntimeError(f"{self.name} must be awaited inside a running event loop; use ainvoke")
