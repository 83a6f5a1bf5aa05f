"""Unit tests for YAML swarm definitions."""

import textwrap

import pytest
from langchain_core.tools import tool

from swarmAgent.config import load_swarm_definition, parse_swarm_definition
from swarmAgent.config.loader import interpolate_env_vars, merge_agent_config
from swarmAgent.runtime import ModelPricing, Swarm
from swarmAgent.utils import CircularDependencyError, ConfigurationError
from swarmAgent.workflow import CommandTransform, WorkflowScheduler
from tests.fakes import ScriptedChatModel


@tool
def Read(file_path: str) -> str:
    """Read a file."""
    return ""


@tool
def Write(file_path: str, content: str) -> str:
    """Write a file."""
    return ""


class FakeResolver:
    def __init__(self):
        self.requests = []

    def __call__(self, model_id=None, **kwargs):
        self.requests.append((model_id, kwargs))
        return ScriptedChatModel(model_name=model_id or "default")


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def parse(resolver, settings, plugins, tmp_path):
    def _parse(config):
        return parse_swarm_definition(
            config,
            base_dir=tmp_path,
            tools={"Read": Read, "Write": Write},
            model_resolver=resolver,
            plugins=plugins,
            settings=settings,
        )
    return _parse


def _config(**swarm):
    base = {"name": "team", "lead": "lead", "agents": {"lead": {}}}
    base.update(swarm)
    return {"version": 2, "swarm": base}


class TestParseSwarmDefinition:

    def test_agents_and_all_agents_merge(self, parse, resolver, tmp_path):
        definition = parse(_config(
            all_agents={"tools": ["Read"], "permissions": {"denied_paths": ["secrets/**"]}},
            agents={
                "lead": {
                    "model": "gpt-4o",
                    "temperature": 0.2,
                    "tools": ["Write"],
                    "delegates_to": ["coder"],
                    "pricing": {"input": 3, "output": 15},
                },
                "coder": {"directory": "src", "permissions": {"allowed_paths": ["**"]}},
            },
        ))

        lead, coder = definition.agents
        assert lead.tool_names() == ["Read", "Write"]
        assert lead.delegates_to == ("coder",)
        assert lead.pricing == ModelPricing(3.0, 15.0)
        assert coder.tool_names() == ["Read"]
        assert coder.directory == str((tmp_path / "src").resolve())
        assert coder.permissions == {"denied_paths": ["secrets/**"], "allowed_paths": ["**"]}
        assert resolver.requests[0] == ("gpt-4o", {"temperature": 0.2})
        assert not definition.is_workflow

    def test_version_must_be_two(self, parse):
        with pytest.raises(ConfigurationError, match="Missing 'version'"):
            parse({"swarm": {}})
        with pytest.raises(ConfigurationError, match="version 2 required"):
            parse({"version": 1, "swarm": {}})

    def test_missing_lead_without_nodes(self, parse):
        config = _config()
        del config["swarm"]["lead"]

        with pytest.raises(ConfigurationError, match="Missing 'lead'"):
            parse(config)

    def test_unknown_tool(self, parse):
        with pytest.raises(ConfigurationError, match="unknown tool 'Bash'"):
            parse(_config(agents={"lead": {"tools": ["Bash"]}}))

    def test_delegation_cycle_rejected(self, parse):
        with pytest.raises(CircularDependencyError):
            parse(_config(agents={
                "lead": {"delegates_to": ["a"]},
                "a": {"delegates_to": ["b"]},
                "b": {"delegates_to": ["a"]},
            }))

    def test_delegate_to_unknown_agent(self, parse):
        with pytest.raises(ConfigurationError, match="unknown agent 'ghost'"):
            parse(_config(agents={"lead": {"delegates_to": ["ghost"]}}))

    def test_all_agents_hooks_are_kept_separately(self, parse):
        hooks = {"pre_tool_use": [{"matcher": "Write", "hooks": [{"command": "true"}]}]}
        definition = parse(_config(all_agents={"hooks": hooks}))

        assert definition.all_agents_hooks == hooks
        assert definition.agents[0].hooks is None

    def test_nodes_build_a_workflow(self, parse):
        definition = parse(_config(
            agents={"architect": {}, "coder": {}},
            lead=None,
            nodes={
                "planning": {"agents": [{"architect": ["coder"]}]},
                "review": {
                    "agents": ["coder"],
                    "depends_on": ["planning"],
                    "output_command": {"command": "cat", "timeout": 3},
                },
            },
            start_node="planning",
        ))

        planning, review = definition.nodes
        assert planning.delegates_of("architect") == ("coder",)
        assert review.dependencies == ["planning"]
        assert review.output_transform == CommandTransform("cat", 3.0)

        engine = definition.build()
        assert isinstance(engine, WorkflowScheduler)
        assert engine.execution_order == ["planning", "review"]

    def test_build_returns_swarm(self, parse, plugins):
        engine = parse(_config()).build(plugins=plugins)

        assert isinstance(engine, Swarm)
        assert engine.lead == "lead"


class TestLoadSwarmDefinition:

    def test_load_from_file_with_env(self, tmp_path, monkeypatch, resolver, settings, plugins):
        monkeypatch.setenv("TEAM_MODEL", "gpt-4o-mini")
        monkeypatch.delenv("TEAM_NAME", raising=False)
        path = tmp_path / "swarm.yml"
        path.write_text(textwrap.dedent("""
            version: 2
            swarm:
              name: ${TEAM_NAME:=Dev Team}
              lead: lead
              agents:
                lead:
                  model: ${TEAM_MODEL}
        """))

        definition = load_swarm_definition(path, model_resolver=resolver, plugins=plugins, settings=settings)

        assert definition.name == "Dev Team"
        assert resolver.requests == [("gpt-4o-mini", {})]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_swarm_definition(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("swarm: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_swarm_definition(path)


class TestHelpers:

    def test_interpolate_unset_variable(self, monkeypatch):
        monkeypatch.delenv("SWARM_TEST_UNSET", raising=False)

        with pytest.raises(ConfigurationError, match="SWARM_TEST_UNSET"):
            interpolate_env_vars({"a": ["${SWARM_TEST_UNSET}"]})
        assert interpolate_env_vars("${SWARM_TEST_UNSET:=}x") == "x"

    def test_merge_scalars_override(self):
        merged = merge_agent_config({"model": "a", "tools": ["Read"]}, {"model": "b"})

        assert merged == {"model": "b", "tools": ["Read"]}
