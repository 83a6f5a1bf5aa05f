"""Execution engine: runs a lead agent to completion with delegation.

One ``Swarm`` owns:

- the agent definitions and one ``AgentRunner`` per agent
- the global model-request semaphore shared by every delegation depth
- its own hook registry (user hooks are copied in, default logging hooks
  are added at priority -100) and the executor over it
- the log stream observers and the per-execution event log
- optional MCP server connections, closed after every execution
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from swarmAgent.config.settings import Settings, get_settings
from swarmAgent.hooks import (
    HookContext,
    HookEvent,
    HookExecutor,
    HookRegistry,
    HookResult,
    apply_agent_hooks,
    apply_swarm_hooks,
)
from swarmAgent.permissions import PermissionConfig, PermissionValidator
from swarmAgent.plugins import PluginRegistry, default_plugin_registry
from swarmAgent.utils.error_handler import (
    AgentNotFoundError,
    ConfigurationError,
    HookHaltError,
    SwarmError,
    format_exception,
)
from swarmAgent.utils.logging_utils import log_error

from .agent import AgentRunner, stringify_output
from .delegation import DelegateTool
from .log_stream import LogObserver, LogStream
from .result import ExecutionResult
from .schema import AgentDefinition

LOGGER = logging.getLogger(__name__)

DEFAULT_HOOK_PRIORITY = -100


class Swarm:
    """Run one lead agent (and whoever it delegates to) per ``execute`` call.

    Args:
        name: Swarm name, exposed to hooks and command environments
        agents: Agent definitions; names must be unique
        lead: Lead agent name (defaults to the first agent)
        hooks: Extra registrations to copy into this swarm's registry
        hooks_config: Declarative swarm-level hooks (swarm_start/swarm_stop)
        all_agents_hooks: Declarative hooks applied to every agent
        plugins: Plugin registry (defaults to the process-wide default)
        log_stream: Event log stream; a fresh one when omitted
        mcp_manager: MCP server manager to shut down after each execution
        global_concurrency: Simultaneous model requests across the swarm
        default_local_concurrency: Tool-call concurrency for agents without
            their own ``max_concurrent_tools``
        settings: Settings override (defaults to ``get_settings()``)

    Raises:
        ConfigurationError: On duplicate agents, unknown delegates, invalid
            hook declarations or invalid permission patterns
    """

    def __init__(
        self,
        name: str,
        agents: Iterable[AgentDefinition],
        lead: Optional[str] = None,
        *,
        hooks: Optional[HookRegistry] = None,
        hooks_config: Optional[Mapping[str, Any]] = None,
        all_agents_hooks: Optional[Mapping[str, Any]] = None,
        plugins: Optional[PluginRegistry] = None,
        log_stream: Optional[LogStream] = None,
        mcp_manager: Any = None,
        global_concurrency: Optional[int] = None,
        default_local_concurrency: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        self.name = name
        self.settings = settings or get_settings()
        self.agents: Dict[str, AgentDefinition] = {}
        for definition in agents:
            if definition.name in self.agents:
                raise ConfigurationError(f"Duplicate agent name: {definition.name}")
            self.agents[definition.name] = definition

        if not self.agents:
            raise ConfigurationError(f"Swarm '{name}' has no agents")

        self.lead = lead or next(iter(self.agents))
        self._validate_agents()

        self.global_concurrency = global_concurrency or self.settings.concurrency.global_concurrency
        self.default_local_concurrency = default_local_concurrency or self.settings.concurrency.local_concurrency
        self.global_semaphore = asyncio.Semaphore(self.global_concurrency)

        self.plugins = plugins if plugins is not None else default_plugin_registry
        self.log_stream = log_stream or LogStream()
        self.mcp_manager = mcp_manager

        self.hooks = HookRegistry()
        if hooks is not None:
            self.hooks.include(hooks)
        self._apply_declared_hooks(hooks_config, all_agents_hooks)
        if self.settings.runtime.default_logging_hooks:
            self._register_default_logging_hooks()
        self.hook_executor = HookExecutor(self.hooks)

        self._validators = self._build_validators()
        self._runners: Dict[str, AgentRunner] = {}
        self._run_log: Optional[List[Dict[str, Any]]] = None
        self._first_message_sent = False

    # ========== Configuration ==========

    def add_hook(self, event, callback=None, **kwargs):
        """Register a hook on this swarm. Same arguments as ``HookRegistry.register``."""
        return self.hooks.register(event, callback, **kwargs)

    def on_log(self, observer: LogObserver) -> LogObserver:
        """Subscribe to event records. Only allowed before the first execution."""
        return self.log_stream.subscribe(observer)

    def agent(self, name: str) -> AgentDefinition:
        if name not in self.agents:
            raise AgentNotFoundError(f"Agent '{name}' not found")
        return self.agents[name]

    @property
    def agent_names(self) -> List[str]:
        return list(self.agents)

    def agent_directory(self, name: Optional[str]) -> Optional[str]:
        definition = self.agents.get(name) if name else None
        return definition.directory if definition else None

    def runner(self, name: str) -> AgentRunner:
        if name not in self._runners:
            if name not in self.agents:
                raise AgentNotFoundError(f"Agent '{name}' not found")
            self._runners[name] = self._build_runner(self.agents[name])
        return self._runners[name]

    # ========== Execution ==========

    def run(self, prompt: str) -> ExecutionResult:
        """Blocking wrapper around ``execute`` for scripts."""
        return asyncio.run(self.execute(prompt))

    async def execute(self, prompt: str) -> ExecutionResult:
        """Run the lead agent on ``prompt`` until no swarm_stop hook reprompts.

        Configuration errors propagate; any other failure is returned as an
        unsuccessful result. swarm_stop fires at least once either way.
        """
        self._freeze()
        await self._initialize_agents()
        self._reset_permits()

        started = time.monotonic()
        run_log: List[Dict[str, Any]] = []
        self._run_log = run_log
        result: Optional[ExecutionResult] = None
        stop_fired = False

        LOGGER.info(f"🚀 Swarm {self.name} started (lead: {self.lead})")

        try:
            start = await self.hook_executor.execute(HookContext(
                event=HookEvent.SWARM_START,
                agent_name=self.lead,
                swarm=self,
                metadata={"swarm_name": self.name, "lead_agent": self.lead, "prompt": prompt},
            ))
            if start.is_halt:
                self.emit_halt(HookEvent.SWARM_START, self.lead, start.value)
                raise HookHaltError(HookEvent.SWARM_START.value, stringify_output(start.value))
            if start.is_replace and start.value:
                prompt = f"{prompt}\n\n<hook-context>\n{stringify_output(start.value)}\n</hook-context>"

            if not self._first_message_sent:
                await self.hook_executor.execute(HookContext(
                    event=HookEvent.FIRST_MESSAGE,
                    agent_name=self.lead,
                    swarm=self,
                    metadata={"prompt": prompt},
                ))
                self._first_message_sent = True

            await self.plugins.emit_event("on_swarm_started", swarm=self)

            current_prompt = prompt
            while True:
                content = await self.runner(self.lead).ask(current_prompt)
                result = self._build_result(content, started)

                decision = await self._fire_swarm_stop(result)
                stop_fired = True
                if not decision.is_reprompt:
                    break
                # No iteration cap: hooks decide when to stop reprompting
                current_prompt = stringify_output(decision.value)
                stop_fired = False
                LOGGER.info(f"↻ swarm_stop reprompted lead agent {self.lead}")

        except ConfigurationError:
            raise
        except Exception as e:
            log_error(LOGGER, e, f"swarm {self.name}")
            result = self._build_result(None, started, error=e)
        finally:
            try:
                if not stop_fired:
                    await self._fire_swarm_stop(
                        result or self._build_result(None, started, error=SwarmError("Execution aborted"))
                    )
            finally:
                self._run_log = None
                await self._cleanup()

        status = "✓" if result.success else "✗"
        LOGGER.info(f"{status} Swarm {self.name} finished in {result.duration:.2f}s")
        return replace(result, logs=tuple(run_log))

    async def delegate(self, caller: str, target: str, task: str, tool_name: Optional[str] = None) -> str:
        """Run ``target`` on ``task`` on behalf of ``caller``.

        pre_delegation Halt/Replace short-circuit the call. Faults inside
        the delegate come back as ``Error: ...`` text.
        """
        pre = await self.hook_executor.execute(HookContext(
            event=HookEvent.PRE_DELEGATION,
            agent_name=caller,
            swarm=self,
            metadata={"task": task, "tool_name": tool_name},
            delegation_target=target,
        ))
        if pre.is_halt:
            self.emit_halt(HookEvent.PRE_DELEGATION, caller, pre.value, delegate_to=target)
            return stringify_output(pre.value) or f"Delegation to {target} halted by hook"
        if pre.is_replace:
            return stringify_output(pre.value)

        try:
            response = await self.runner(target).ask(task)
        except Exception as e:
            LOGGER.error(f"✗ Delegation {caller} → {target} failed: {format_exception(e)}")
            self.emit(
                type="delegation_error",
                agent=caller,
                delegate_to=target,
                error_class=type(e).__name__,
                error_message=str(e),
            )
            return f"Error: {format_exception(e)}"

        post = await self.hook_executor.execute(HookContext(
            event=HookEvent.POST_DELEGATION,
            agent_name=caller,
            swarm=self,
            metadata={"task": task, "tool_name": tool_name},
            delegation_target=target,
            delegation_result=response,
        ))
        if post.is_replace:
            return stringify_output(post.value)
        return response

    def emit(self, **data: Any) -> Dict[str, Any]:
        """Emit an event record and append it to the running execution's log."""
        record = self.log_stream.emit(**data)
        if self._run_log is not None:
            self._run_log.append(record)
        return record

    def emit_halt(self, event: HookEvent, agent_name: Optional[str], reason: Any, **extra: Any) -> None:
        """Record that a hook halted ``event``."""
        self.emit(
            type="hook_halted",
            event=event.value,
            agent=agent_name,
            reason=stringify_output(reason) or None,
            **extra,
        )

    # ========== Internals ==========

    def _validate_agents(self) -> None:
        if self.lead not in self.agents:
            raise AgentNotFoundError(
                f"Lead agent '{self.lead}' not found. Available agents: {', '.join(self.agents)}"
            )
        for definition in self.agents.values():
            for target in definition.delegates_to:
                if target not in self.agents:
                    raise AgentNotFoundError(
                        f"Agent '{definition.name}' delegates to unknown agent '{target}'"
                    )
                if target == definition.name:
                    raise ConfigurationError(f"Agent '{target}' cannot delegate to itself")

    def _apply_declared_hooks(
        self,
        hooks_config: Optional[Mapping[str, Any]],
        all_agents_hooks: Optional[Mapping[str, Any]],
    ) -> None:
        timeout = self.settings.hooks.hook_timeout
        apply_swarm_hooks(self.hooks, hooks_config, swarm_name=self.name, default_timeout=timeout)
        apply_agent_hooks(
            self.hooks, all_agents_hooks, agent_name=None, swarm_name=self.name, default_timeout=timeout
        )
        for definition in self.agents.values():
            apply_agent_hooks(
                self.hooks,
                definition.hooks,
                agent_name=definition.name,
                swarm_name=self.name,
                default_timeout=timeout,
            )

    def _build_validators(self) -> Dict[str, PermissionValidator]:
        validators = {}
        for definition in self.agents.values():
            if not definition.permissions:
                continue
            config = PermissionConfig.from_dict(definition.permissions, definition.directory)
            if not config.is_unrestricted:
                validators[definition.name] = PermissionValidator(config)
        return validators

    def _build_runner(self, definition: AgentDefinition) -> AgentRunner:
        tools = list(definition.tools)
        for target in definition.delegates_to:
            tools.append(DelegateTool(
                caller=definition.name,
                target=target,
                engine=self,
                target_description=self.agents[target].description,
            ))

        names = [t.name for t in tools]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Agent '{definition.name}' has duplicate tools: {', '.join(duplicates)}")

        contributions = [
            p.system_prompt_contribution(definition) for p in self.plugins.all()
        ]
        prompt_parts = [definition.system_prompt, *contributions]
        effective = replace(definition, system_prompt="\n\n".join(p for p in prompt_parts if p) or None)

        return AgentRunner(
            effective,
            engine=self,
            tools=tools,
            validator=self._validators.get(definition.name),
            max_concurrent_tools=definition.max_concurrent_tools or self.default_local_concurrency,
            recursion_limit=self.settings.runtime.recursion_limit,
            context_window=definition.context_window or self.settings.models.context_window,
        )

    async def _initialize_agents(self) -> None:
        new_names = [n for n in self.agents if n not in self._runners]
        for name in new_names:
            runner = self.runner(name)
            await self.plugins.emit_event("on_agent_initialized", agent_name=name, runner=runner)
        if new_names:
            LOGGER.debug(f"  Initialized agents: {', '.join(new_names)}")

    def _reset_permits(self) -> None:
        # Semaphores bind to the loop that first contends on them; each
        # execute may run on a fresh loop
        self.global_semaphore = asyncio.Semaphore(self.global_concurrency)
        for runner in self._runners.values():
            runner.reset_permits()

    def _freeze(self) -> None:
        self.hooks.freeze()
        self.log_stream.freeze()
        self.plugins.freeze()

    def _build_result(
        self,
        content: Optional[str],
        started: float,
        error: Optional[BaseException] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            content=content,
            agent=self.lead,
            duration=time.monotonic() - started,
            logs=tuple(self._run_log or ()),
            error=error,
        )

    async def _fire_swarm_stop(self, result: ExecutionResult) -> HookResult:
        return await self.hook_executor.execute(HookContext(
            event=HookEvent.SWARM_STOP,
            agent_name=self.lead,
            swarm=self,
            metadata={
                "swarm_name": self.name,
                "lead_agent": self.lead,
                "last_agent": result.agent,
                "content": result.content,
                "success": result.success,
                "duration": result.duration,
                "total_cost": result.total_cost,
                "total_tokens": result.total_tokens,
                "agents_involved": result.agents_involved,
                "result": result,
            },
        ))

    async def _cleanup(self) -> None:
        await self.plugins.emit_event("on_swarm_stopped", swarm=self)
        if self.mcp_manager is not None:
            try:
                await self.mcp_manager.shutdown()
            except Exception as e:
                LOGGER.error(f"✗ MCP shutdown failed for swarm {self.name}: {e}")

    # ========== Default logging hooks ==========

    def _register_default_logging_hooks(self) -> None:
        for event, callback in (
            (HookEvent.SWARM_START, self._log_swarm_start),
            (HookEvent.SWARM_STOP, self._log_swarm_stop),
            (HookEvent.USER_PROMPT, self._log_user_prompt),
            (HookEvent.AGENT_STEP, self._log_agent_turn),
            (HookEvent.AGENT_STOP, self._log_agent_turn),
            (HookEvent.PRE_TOOL_USE, self._log_tool_call),
            (HookEvent.POST_TOOL_USE, self._log_tool_result),
            (HookEvent.PRE_DELEGATION, self._log_delegation),
            (HookEvent.POST_DELEGATION, self._log_delegation_result),
            (HookEvent.CONTEXT_WARNING, self._log_context_warning),
        ):
            self.hooks.register(event, callback, priority=DEFAULT_HOOK_PRIORITY, name=f"log:{event.value}")

    def _log_swarm_start(self, ctx: HookContext) -> None:
        meta = ctx.metadata
        self.emit(
            type="swarm_start",
            agent=meta.get("lead_agent"),
            swarm_name=meta.get("swarm_name"),
            lead_agent=meta.get("lead_agent"),
            prompt=meta.get("prompt"),
        )

    def _log_swarm_stop(self, ctx: HookContext) -> None:
        meta = ctx.metadata
        self.emit(
            type="swarm_stop",
            swarm_name=meta.get("swarm_name"),
            lead_agent=meta.get("lead_agent"),
            last_agent=meta.get("last_agent"),
            content=meta.get("content"),
            success=meta.get("success"),
            duration=meta.get("duration"),
            total_cost=meta.get("total_cost"),
            total_tokens=meta.get("total_tokens"),
            agents_involved=meta.get("agents_involved"),
        )

    def _log_user_prompt(self, ctx: HookContext) -> None:
        meta = ctx.metadata
        self.emit(
            type="user_prompt",
            agent=ctx.agent_name,
            model=meta.get("model") or "unknown",
            message_count=meta.get("message_count") or 0,
            tools=meta.get("tools") or [],
            delegates_to=meta.get("delegates_to") or [],
            prompt=meta.get("prompt"),
        )

    def _log_agent_turn(self, ctx: HookContext) -> None:
        meta = ctx.metadata
        self.emit(
            type=ctx.event.value,
            agent=ctx.agent_name,
            model=meta.get("model"),
            content=meta.get("content"),
            tool_calls=meta.get("tool_calls"),
            finish_reason=meta.get("finish_reason"),
            usage=meta.get("usage"),
        )

    def _log_tool_call(self, ctx: HookContext) -> None:
        call = ctx.tool_call
        self.emit(
            type="tool_call",
            agent=ctx.agent_name,
            tool_call_id=call.id if call else None,
            tool=call.name if call else None,
            arguments=call.parameters if call else None,
        )

    def _log_tool_result(self, ctx: HookContext) -> None:
        res = ctx.tool_result
        self.emit(
            type="tool_result",
            agent=ctx.agent_name,
            tool_call_id=res.tool_call_id if res else None,
            tool=res.tool_name if res else None,
            result=res.content if res else None,
            success=res.success if res else None,
        )

    def _log_delegation(self, ctx: HookContext) -> None:
        self.emit(
            type="agent_delegation",
            agent=ctx.agent_name,
            delegate_to=ctx.delegation_target,
            tool=ctx.metadata.get("tool_name"),
            task=ctx.metadata.get("task"),
        )

    def _log_delegation_result(self, ctx: HookContext) -> None:
        self.emit(
            type="delegation_result",
            agent=ctx.agent_name,
            delegate_from=ctx.delegation_target,
            tool=ctx.metadata.get("tool_name"),
            result=ctx.delegation_result,
        )

    def _log_context_warning(self, ctx: HookContext) -> None:
        meta = ctx.metadata
        self.emit(
            type="context_limit_warning",
            agent=ctx.agent_name,
            threshold=f"{meta.get('threshold')}%",
            current_usage=f"{meta.get('percentage')}%",
            tokens_used=meta.get("tokens_used"),
            tokens_remaining=meta.get("tokens_remaining"),
        )
