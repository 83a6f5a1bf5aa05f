"""External-command runner shared by command hooks and workflow transformers.

Contract for the child process:

- one JSON object on stdin
- ``SWARM_SDK_PROJECT_DIR``, ``SWARM_SDK_AGENT_NAME``, ``SWARM_SDK_SWARM_NAME``
  (and ``SWARM_SDK_EVENT`` when known) in the environment
- exit 0: success, stdout is the new content
- exit 1: skip (input transform) / pass through (output transform)
- exit 2: halt, stderr is the reason
- anything else, a launch failure or a timeout: continue with the original
  content, logged as a warning
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_SKIP = 1
EXIT_HALT = 2


class OutcomeKind(str, Enum):
    CONTINUE = "continue"
    SKIP = "skip"
    HALT = "halt"


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """Result of one external command.

    ``content`` is the stripped stdout for a successful run, None when the
    original content should be kept.
    """

    kind: OutcomeKind
    content: Optional[str] = None
    reason: Optional[str] = None
    exit_code: Optional[int] = None
    timed_out: bool = False

    @property
    def is_continue(self) -> bool:
        return self.kind is OutcomeKind.CONTINUE

    @property
    def is_skip(self) -> bool:
        return self.kind is OutcomeKind.SKIP

    @property
    def is_halt(self) -> bool:
        return self.kind is OutcomeKind.HALT


def build_environment(
    working_dir: Optional[str] = None,
    agent_name: Optional[str] = None,
    swarm_name: Optional[str] = None,
    event: Optional[str] = None,
) -> Dict[str, str]:
    env = os.environ.copy()
    env["SWARM_SDK_PROJECT_DIR"] = str(working_dir or os.getcwd())
    env["SWARM_SDK_AGENT_NAME"] = str(agent_name or "")
    env["SWARM_SDK_SWARM_NAME"] = str(swarm_name or "")
    if event:
        env["SWARM_SDK_EVENT"] = str(event)
    return env


class ProcessRunner:
    """Run a shell command and map its exit code to a ProcessOutcome."""

    def __init__(self, timeout: float = 60.0):
        self.timeout = timeout

    async def run(
        self,
        command: str,
        payload: Dict[str, Any],
        *,
        working_dir: Optional[str] = None,
        agent_name: Optional[str] = None,
        swarm_name: Optional[str] = None,
        event: Optional[str] = None,
    ) -> ProcessOutcome:
        env = build_environment(working_dir, agent_name, swarm_name, event)
        stdin_data = json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8")
        cwd = working_dir if working_dir and os.path.isdir(working_dir) else None

        LOGGER.debug(f"  Running command ({event or 'transform'}): {command}")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=cwd,
            )
        except OSError as e:
            LOGGER.warning(f"✗ Failed to launch command '{command}': {e}")
            return ProcessOutcome(OutcomeKind.CONTINUE)

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(stdin_data), timeout=self.timeout)
        except asyncio.TimeoutError:
            LOGGER.warning(f"✗ Command timed out after {self.timeout}s: {command}")
            await _terminate(process)
            return ProcessOutcome(OutcomeKind.CONTINUE, timed_out=True)

        return self.interpret(
            process.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            command,
        )

    @staticmethod
    def interpret(exit_code: Optional[int], stdout: str, stderr: str, command: str = "") -> ProcessOutcome:
        """Exit-code mapping. The only place that knows the numbers."""
        out = stdout.strip()
        err = stderr.strip()

        if exit_code == EXIT_SUCCESS:
            return ProcessOutcome(OutcomeKind.CONTINUE, content=out or None, exit_code=exit_code)
        if exit_code == EXIT_SKIP:
            return ProcessOutcome(OutcomeKind.SKIP, content=out or None, reason=err or None, exit_code=exit_code)
        if exit_code == EXIT_HALT:
            reason = err or out or f"Command halted: {command}"
            return ProcessOutcome(OutcomeKind.HALT, reason=reason, exit_code=exit_code)

        LOGGER.warning(f"Command exited with {exit_code}, continuing: {command}")
        if err:
            LOGGER.debug(f"  stderr: {err}")
        return ProcessOutcome(OutcomeKind.CONTINUE, reason=err or None, exit_code=exit_code)


async def _terminate(process: "asyncio.subprocess.Process") -> None:
    try:
        process.kill()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout=5)
    except asyncio.TimeoutError:
        LOGGER.warning(f"Process {process.pid} did not exit after kill")
