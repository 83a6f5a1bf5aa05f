"""Control results returned by hooks.

The executor only distinguishes Continue from everything else. What Halt,
Replace or Reprompt mean is decided by the call site that fired the event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class HookAction(str, Enum):
    CONTINUE = "continue"
    HALT = "halt"
    REPLACE = "replace"
    REPROMPT = "reprompt"


@dataclass(frozen=True, slots=True)
class HookResult:
    action: HookAction = HookAction.CONTINUE
    value: Any = None

    @classmethod
    def continue_(cls) -> "HookResult":
        return CONTINUE

    @classmethod
    def halt(cls, reason: str) -> "HookResult":
        return cls(HookAction.HALT, reason)

    @classmethod
    def replace(cls, value: Any) -> "HookResult":
        return cls(HookAction.REPLACE, value)

    @classmethod
    def reprompt(cls, prompt: str) -> "HookResult":
        return cls(HookAction.REPROMPT, prompt)

    @property
    def is_continue(self) -> bool:
        return self.action is HookAction.CONTINUE

    @property
    def is_halt(self) -> bool:
        return self.action is HookAction.HALT

    @property
    def is_replace(self) -> bool:
        return self.action is HookAction.REPLACE

    @property
    def is_reprompt(self) -> bool:
        return self.action is HookAction.REPROMPT


CONTINUE = HookResult()
