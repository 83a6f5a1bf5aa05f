"""Run the hooks registered for an event."""

from __future__ import annotations

import inspect
import logging

from swarmAgent.utils.logging_utils import log_hook_result

from .context import HookContext
from .registry import HookRegistry
from .result import CONTINUE, HookResult

LOGGER = logging.getLogger(__name__)


class HookExecutor:
    """Dispatch an event to matching registrations in priority order.

    The first non-Continue result wins and ends the chain. A hook that raises
    is logged and treated as Continue, so the chain moves on to the next hook.
    Awaitable hooks are awaited inline before the caller proceeds.
    """

    def __init__(self, registry: HookRegistry):
        self.registry = registry

    async def execute(self, context: HookContext) -> HookResult:
        for registration in self.registry.get(context.event):
            if not registration.applies_to(context):
                continue

            try:
                outcome = registration.callback(context)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as e:
                LOGGER.warning(
                    f"✗ Hook {registration.label} failed on {context.event.value} "
                    f"(agent={context.agent_name}): {type(e).__name__}: {e}"
                )
                LOGGER.debug("Hook traceback", exc_info=e)
                continue

            if outcome is None:
                continue
            if not isinstance(outcome, HookResult):
                LOGGER.warning(
                    f"Hook {registration.label} returned {type(outcome).__name__}, expected HookResult; ignoring"
                )
                continue
            if outcome.is_continue:
                continue

            log_hook_result(LOGGER, context.event.value, registration.label, outcome.action.value)
            return outcome

        return CONTINUE
