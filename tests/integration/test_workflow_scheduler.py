"""Workflow scheduling, transforms and node events."""

import pytest

from swarmAgent.runtime import AgentDefinition, LogStream
from swarmAgent.utils import (
    AgentNotFoundError,
    CircularDependencyError,
    ConfigurationError,
    TransformHaltError,
)
from swarmAgent.workflow import SkipExecution, StageNode, WorkflowScheduler
from tests.fakes import ScriptedChatModel


@pytest.fixture
def writer():
    return ScriptedChatModel(script=["draft"])


@pytest.fixture
def make_workflow(writer, settings, plugins):
    def _make(nodes, start_node, **kwargs):
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("plugins", plugins)
        agents = kwargs.pop("agents", [AgentDefinition("writer", writer)])
        return WorkflowScheduler("pipeline", agents, nodes, start_node, **kwargs)
    return _make


def _agent_node(name, *deps):
    node = StageNode(name).depends_on(*deps)
    node.agent("writer")
    return node


class TestValidation:

    def test_diamond_order(self, make_workflow):
        scheduler = make_workflow(
            [
                StageNode("D").depends_on("B", "C").input(lambda ctx: "d"),
                StageNode("B").depends_on("A").input(lambda ctx: "b"),
                _agent_node("A"),
                StageNode("C").depends_on("A").input(lambda ctx: "c"),
            ],
            "A",
        )

        assert scheduler.execution_order == ["A", "B", "C", "D"]

    def test_cycle_names_stuck_nodes(self, make_workflow):
        with pytest.raises(CircularDependencyError) as excinfo:
            make_workflow([_agent_node("start"), _agent_node("X", "Y"), _agent_node("Y", "X")], "start")

        assert excinfo.value.nodes == ["X", "Y"]

    def test_start_node_cannot_have_dependencies(self, make_workflow):
        with pytest.raises(ConfigurationError, match="cannot have dependencies"):
            make_workflow([_agent_node("a"), _agent_node("b", "a")], "b")

    def test_missing_start_node(self, make_workflow):
        with pytest.raises(ConfigurationError, match="start_node 'nope' not found"):
            make_workflow([_agent_node("a")], "nope")

    def test_unknown_dependency(self, make_workflow):
        with pytest.raises(ConfigurationError, match="unknown node 'ghost'"):
            make_workflow([_agent_node("a"), _agent_node("b", "ghost")], "a")

    def test_agent_less_node_without_transforms(self, make_workflow):
        with pytest.raises(ConfigurationError, match="must have at least one transformer"):
            make_workflow([_agent_node("a"), StageNode("empty").depends_on("a")], "a")

    def test_unknown_agent(self, make_workflow):
        node = StageNode("a")
        node.agent("stranger")

        with pytest.raises(AgentNotFoundError, match="undefined agent 'stranger'"):
            make_workflow([node], "a")


class TestExecution:

    @pytest.mark.asyncio
    async def test_diamond_fan_in_sees_all_dependencies(self, make_workflow):
        scheduler = make_workflow(
            [
                _agent_node("A"),
                StageNode("B").depends_on("A").input(lambda ctx: f"B({ctx.previous_result.content})"),
                StageNode("C").depends_on("A").input(lambda ctx: f"C({ctx.previous_result.content})"),
                StageNode("D").depends_on("B", "C").input(
                    lambda ctx: " + ".join(ctx.previous_result[d].content for d in ctx.dependencies)
                ),
            ],
            "A",
        )

        result = await scheduler.execute("write something")

        assert result.content == "B(draft) + C(draft)"
        assert result.agent == "computation:D"

    @pytest.mark.asyncio
    async def test_output_transform_feeds_next_node(self, make_workflow):
        seen = {}

        def publish(ctx):
            seen["previous"] = ctx.previous_result.content
            return ctx.content + "!"

        scheduler = make_workflow(
            [
                _agent_node("draft").output(lambda ctx: ctx.content.upper()),
                StageNode("publish").depends_on("draft").input(publish),
            ],
            "draft",
        )

        result = await scheduler.execute("go")

        assert result.content == "DRAFT!"
        # Agent node results keep the swarm's own content
        assert seen["previous"] == "draft"

    @pytest.mark.asyncio
    async def test_input_skip_bypasses_agents(self, make_workflow, writer):
        scheduler = make_workflow(
            [_agent_node("intake").input(lambda ctx: SkipExecution("cached answer"))],
            "intake",
        )

        result = await scheduler.execute("go")

        assert result.content == "cached answer"
        assert result.agent == "skipped:intake"
        assert writer.calls == []

    @pytest.mark.asyncio
    async def test_dict_skip_signal(self, make_workflow, writer):
        scheduler = make_workflow(
            [_agent_node("intake").input(lambda ctx: {"skip_execution": True, "content": "X"})],
            "intake",
        )

        result = await scheduler.execute("go")

        assert result.content == "X"
        assert writer.calls == []

    @pytest.mark.asyncio
    async def test_async_transform_and_prompt_reaches_agent(self, make_workflow, writer):
        async def frame(ctx):
            return f"Task: {ctx.original_prompt}"

        scheduler = make_workflow([_agent_node("draft").input(frame)], "draft")

        result = await scheduler.execute("write a haiku")

        assert result.content == "draft"
        assert writer.prompts == ["Task: write a haiku"]

    @pytest.mark.asyncio
    async def test_raising_input_transform_keeps_input(self, make_workflow, writer):
        def broken(ctx):
            raise RuntimeError("transform bug")

        scheduler = make_workflow([_agent_node("draft").input(broken)], "draft")

        result = await scheduler.execute("hi")

        assert result.success
        assert result.content == "draft"
        assert writer.prompts == ["hi"]

    @pytest.mark.asyncio
    async def test_raising_output_transform_passes_result_through(self, make_workflow):
        async def broken(ctx):
            raise ValueError("bad output")

        scheduler = make_workflow(
            [_agent_node("draft").output(broken), StageNode("next").depends_on("draft").input(lambda ctx: ctx.content)],
            "draft",
        )

        result = await scheduler.execute("go")

        assert result.content == "draft"
        assert result.agent == "computation:next"

    @pytest.mark.asyncio
    async def test_node_events_and_swarm_naming(self, make_workflow):
        stream = LogStream()
        events = []
        stream.subscribe(events.append)
        scheduler = make_workflow(
            [_agent_node("draft"), StageNode("format").depends_on("draft").output(lambda ctx: ctx.content)],
            "draft",
            log_stream=stream,
        )

        await scheduler.execute("go")

        node_events = [(e["type"], e["node"]) for e in events if e["type"] in ("node_start", "node_stop")]
        assert node_events == [
            ("node_start", "draft"), ("node_stop", "draft"),
            ("node_start", "format"), ("node_stop", "format"),
        ]
        (swarm_start,) = [e for e in events if e["type"] == "swarm_start"]
        assert swarm_start["swarm_name"] == "pipeline:draft"
        stops = [e for e in events if e["type"] == "node_stop"]
        assert stops[1]["agent_less"] is True
        assert stops[0]["skipped"] is False


class TestCommandTransforms:

    @pytest.mark.asyncio
    async def test_stdout_replaces_content(self, make_workflow, write_script):
        scheduler = make_workflow(
            [StageNode("prep").input_command(write_script("prep.sh", "echo from command"), timeout=10)],
            "prep",
        )

        result = await scheduler.execute("go")

        assert result.content == "from command"

    @pytest.mark.asyncio
    async def test_exit_one_skips_node(self, make_workflow, write_script, writer):
        scheduler = make_workflow(
            [_agent_node("intake").input_command(write_script("skip.sh", "exit 1"), timeout=10)],
            "intake",
        )

        result = await scheduler.execute("original prompt")

        assert result.content == "original prompt"
        assert result.agent == "skipped:intake"
        assert writer.calls == []

    @pytest.mark.asyncio
    async def test_exit_two_halts_workflow(self, make_workflow, write_script, writer):
        scheduler = make_workflow(
            [
                _agent_node("draft"),
                StageNode("gate").depends_on("draft").output_command(
                    write_script("gate.sh", 'echo "quality gate failed" >&2\nexit 2'), timeout=10
                ),
            ],
            "draft",
        )

        with pytest.raises(TransformHaltError, match="quality gate failed") as excinfo:
            await scheduler.execute("go")

        assert excinfo.value.node_name == "gate"
        assert excinfo.value.phase == "output"
