"""Unit tests for the external-command runner and its exit-code contract."""

import json

import pytest

from swarmAgent.hooks import ProcessRunner
from swarmAgent.hooks.shell import OutcomeKind, build_environment


class TestInterpret:
    """Exit-code mapping without spawning processes."""

    def test_exit_zero_is_continue_with_stdout(self):
        outcome = ProcessRunner.interpret(0, " new content \n", "")
        assert outcome.kind is OutcomeKind.CONTINUE
        assert outcome.content == "new content"

    def test_exit_zero_with_empty_stdout_keeps_content(self):
        assert ProcessRunner.interpret(0, "", "").content is None

    def test_exit_one_is_skip(self):
        assert ProcessRunner.interpret(1, "", "").is_skip

    def test_exit_two_is_halt_with_stderr_reason(self):
        outcome = ProcessRunner.interpret(2, "", "not allowed\n")
        assert outcome.is_halt
        assert outcome.reason == "not allowed"

    def test_other_exit_codes_continue(self):
        outcome = ProcessRunner.interpret(7, "ignored", "oops")
        assert outcome.is_continue
        assert outcome.content is None


class TestProcessRunner:

    @pytest.mark.asyncio
    async def test_payload_on_stdin_and_environment(self, tmp_path, write_script):
        command = write_script(
            "echo.sh",
            'cat > "$SWARM_SDK_PROJECT_DIR/payload.json"\n'
            'echo "$SWARM_SDK_AGENT_NAME/$SWARM_SDK_SWARM_NAME/$SWARM_SDK_EVENT"',
        )

        outcome = await ProcessRunner(timeout=10).run(
            command,
            {"prompt": "hello"},
            working_dir=str(tmp_path),
            agent_name="lead",
            swarm_name="team",
            event="user_prompt",
        )

        assert outcome.is_continue
        assert outcome.content == "lead/team/user_prompt"
        assert json.loads((tmp_path / "payload.json").read_text()) == {"prompt": "hello"}

    @pytest.mark.asyncio
    async def test_halt_reason_from_stderr(self, write_script):
        command = write_script("halt.sh", 'echo "dangerous" >&2\nexit 2')

        outcome = await ProcessRunner(timeout=10).run(command, {})

        assert outcome.is_halt
        assert outcome.reason == "dangerous"

    @pytest.mark.asyncio
    async def test_timeout_is_non_halting_continue(self, write_script):
        command = write_script("slow.sh", "sleep 5\necho late")

        outcome = await ProcessRunner(timeout=0.3).run(command, {})

        assert outcome.is_continue
        assert outcome.timed_out
        assert outcome.content is None

    def test_build_environment(self, tmp_path):
        env = build_environment(str(tmp_path), "coder", "team")

        assert env["SWARM_SDK_PROJECT_DIR"] == str(tmp_path)
        assert env["SWARM_SDK_AGENT_NAME"] == "coder"
        assert env["SWARM_SDK_SWARM_NAME"] == "team"
        assert "SWARM_SDK_EVENT" not in env
