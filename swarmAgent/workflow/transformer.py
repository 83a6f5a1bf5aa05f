"""Input/output transforms for workflow nodes.

A transform is either an in-process callable (sync or async) receiving a
``NodeContext``, or a shell command run through ``ProcessRunner``.

Command exit codes:

- 0: stdout becomes the new content (empty stdout keeps the current content)
- 1: input transforms skip the node and keep the input unchanged; output
  transforms pass the result through unchanged
- 2: halt the whole workflow (``TransformHaltError``)
- anything else or a timeout: keep the current content
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from swarmAgent.hooks.shell import ProcessRunner
from swarmAgent.utils.error_handler import TransformHaltError
from swarmAgent.utils.logging_utils import log_error

from .context import NodeContext

LOGGER = logging.getLogger(__name__)

INPUT = "input"
OUTPUT = "output"

TransformCallable = Callable[[NodeContext], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True, slots=True)
class SkipExecution:
    """Returned by an input transform to skip the node's agents.

    ``content`` becomes the node's result content.
    """

    content: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CommandTransform:
    command: str
    timeout: float = 60.0


Transform = Union[TransformCallable, CommandTransform]


def as_skip(value: Any) -> Optional[SkipExecution]:
    """Recognize skip signals: ``SkipExecution`` or ``{"skip_execution": True, "content": ...}``."""
    if isinstance(value, SkipExecution):
        return value
    if isinstance(value, Mapping) and value.get("skip_execution"):
        content = value.get("content")
        return SkipExecution(None if content is None else str(content))
    return None


async def apply_transform(
    transform: Transform,
    context: NodeContext,
    *,
    phase: str,
    fallback_content: Optional[str],
    swarm_name: Optional[str] = None,
    working_dir: Optional[str] = None,
) -> Any:
    """Run one transform and return its value.

    Callables may return a string, a skip signal (input phase only) or None,
    which keeps ``fallback_content``. A callable that raises is logged and
    also keeps ``fallback_content``.

    Raises:
        TransformHaltError: A command transform exited with code 2, or a
            callable raised it
    """
    if isinstance(transform, CommandTransform):
        return await _run_command(transform, context, phase, fallback_content, swarm_name, working_dir)

    try:
        value = transform(context)
        if inspect.isawaitable(value):
            value = await value
    except TransformHaltError:
        raise
    except Exception as e:
        log_error(LOGGER, e, f"{phase} transformer of node {context.node_name}")
        return fallback_content
    if value is None:
        return fallback_content
    skip = as_skip(value)
    if skip is not None:
        return skip
    return value if isinstance(value, str) else str(value)


async def _run_command(
    transform: CommandTransform,
    context: NodeContext,
    phase: str,
    fallback_content: Optional[str],
    swarm_name: Optional[str],
    working_dir: Optional[str],
) -> Any:
    runner = ProcessRunner(timeout=transform.timeout)
    outcome = await runner.run(
        transform.command,
        context.to_payload(phase, fallback_content),
        working_dir=working_dir,
        swarm_name=swarm_name,
        event=phase,
    )

    if outcome.is_halt:
        LOGGER.error(f"✗ {phase} transformer halted node {context.node_name}: {outcome.reason}")
        raise TransformHaltError(context.node_name, phase, outcome.reason)
    if outcome.is_skip:
        if phase == INPUT:
            LOGGER.info(f"  Node {context.node_name} skipped by input transformer")
            return SkipExecution(fallback_content)
        return fallback_content
    return outcome.content if outcome.content is not None else fallback_content
