"""Tests for the run controller (archiver phase + iteration loop)."""

from __future__ import annotations

import datetime as dt
import json
from pathlib import Path

import pytest

from ralph.agent_runner import AgentRunner
from ralph.claude_code import ClaudeCodeRunner
from ralph.config import ConfigurationError, RalphConfig
from ralph.controller import RalphController, build_runner, validate_tool
from ralph.schemas import RunResult, StopReason


class CountingRunner(AgentRunner):
    name = "counting"

    def __init__(self, complete_on: int | None = None) -> None:
        self.complete_on = complete_on
        self.calls: list[tuple[Path, str]] = []

    def run(self, project_dir: str | Path, prompt: str) -> RunResult:
        self.calls.append((Path(project_dir), prompt))
        done = self.complete_on is not None and len(self.calls) == self.complete_on
        return RunResult(
            success=True,
            exit_code=0,
            output="<promise>COMPLETE</promise>" if done else "progress",
        )


def _config(tmp_path: Path, **overrides) -> RalphConfig:
    values = {"project_dir": tmp_path, "tool": "amp", "max_iterations": 3, "sleep_seconds": 0}
    values.update(overrides)
    return RalphConfig(**values)


def _write_prd(tmp_path: Path, branch: str) -> None:
    (tmp_path / "prd.json").write_text(
        json.dumps({"project": "demo", "branchName": branch, "userStories": []}),
        encoding="utf-8",
    )


def _controller(config: RalphConfig, runner: AgentRunner) -> RalphController:
    return RalphController(config, runner=runner, today=lambda: dt.date(2024, 1, 1))


class TestValidation:
    def test_validate_tool_accepts_registered_tools(self):
        assert validate_tool("claude") is ClaudeCodeRunner

    def test_invalid_tool_fails_before_any_iteration(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        runner = CountingRunner()
        with pytest.raises(ConfigurationError, match="Invalid tool 'gpt'. Must be 'amp' or 'claude'."):
            _controller(_config(tmp_path, tool="gpt"), runner).run()
        assert runner.calls == []
        assert not (tmp_path / ".ralph").exists()

    def test_tool_match_is_case_sensitive(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        runner = CountingRunner()
        with pytest.raises(ConfigurationError, match="Invalid tool 'AMP'"):
            _controller(_config(tmp_path, tool="AMP"), runner).run()
        assert runner.calls == []

    def test_missing_prd_is_fatal(self, tmp_path: Path):
        runner = CountingRunner()
        with pytest.raises(ConfigurationError, match="No prd.json found") as exc_info:
            _controller(_config(tmp_path), runner).run()
        assert "ralph init" in str(exc_info.value)
        assert runner.calls == []

    def test_build_runner_uses_configured_binary(self, tmp_path: Path):
        runner = build_runner(_config(tmp_path, tool="claude", claude_binary="/opt/claude"))
        assert isinstance(runner, ClaudeCodeRunner)
        assert runner.claude_binary == "/opt/claude"


class TestRun:
    def test_budget_three_without_sentinel_is_exhausted(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        runner = CountingRunner()

        result = _controller(_config(tmp_path, max_iterations=3), runner).run()

        assert result.outcome == StopReason.EXHAUSTED
        assert result.exit_code == 1
        assert len(runner.calls) == 3

    def test_budget_five_with_sentinel_on_second_pass(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        runner = CountingRunner(complete_on=2)

        result = _controller(_config(tmp_path, max_iterations=5), runner).run()

        assert result.outcome == StopReason.COMPLETED
        assert result.exit_code == 0
        assert result.iterations == 2
        assert len(runner.calls) == 2

    def test_runner_gets_tool_prompt_and_project_dir(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        runner = CountingRunner(complete_on=1)

        _controller(_config(tmp_path, tool="claude"), runner).run()

        project_dir, prompt = runner.calls[0]
        assert project_dir == tmp_path
        assert "<promise>COMPLETE</promise>" in prompt

    def test_template_dir_override(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "prompt.md").write_text("custom amp prompt\n", encoding="utf-8")
        runner = CountingRunner(complete_on=1)

        _controller(_config(tmp_path, template_dir=templates), runner).run()

        assert runner.calls[0][1] == "custom amp prompt\n"

    def test_first_run_creates_state_and_progress_log(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")

        result = _controller(_config(tmp_path), CountingRunner(complete_on=1)).run()

        assert result.archive is None
        assert (tmp_path / ".ralph" / "archive").is_dir()
        assert (tmp_path / ".ralph" / ".last-branch").read_text(encoding="utf-8") == "ralph/a\n"
        assert (tmp_path / "progress.txt").read_text(encoding="utf-8").startswith(
            "# Ralph Progress Log\n"
        )

    def test_branch_change_archives_by_previous_branch(self, tmp_path: Path):
        _write_prd(tmp_path, "beta")
        (tmp_path / ".ralph").mkdir()
        (tmp_path / ".ralph" / ".last-branch").write_text("ralph/alpha\n", encoding="utf-8")
        (tmp_path / "progress.txt").write_text("alpha notes\n", encoding="utf-8")

        result = _controller(_config(tmp_path), CountingRunner(complete_on=1)).run()

        folder = tmp_path / ".ralph" / "archive" / "2024-01-01-alpha"
        assert result.archive is not None
        assert result.archive.key == "2024-01-01-alpha"
        assert (folder / "progress.txt").read_text(encoding="utf-8") == "alpha notes\n"
        assert (folder / "prd.json").is_file()
        assert "alpha notes" not in (tmp_path / "progress.txt").read_text(encoding="utf-8")
        assert (tmp_path / ".ralph" / ".last-branch").read_text(encoding="utf-8") == "beta\n"

    def test_repeat_invocation_without_branch_change_is_idempotent(self, tmp_path: Path):
        _write_prd(tmp_path, "ralph/a")
        config = _config(tmp_path, max_iterations=1)
        _controller(config, CountingRunner()).run()
        with (tmp_path / "progress.txt").open("a", encoding="utf-8") as handle:
            handle.write("learned something\n")

        result = _controller(config, CountingRunner()).run()

        assert result.archive is None
        assert list((tmp_path / ".ralph" / "archive").iterdir()) == []
        assert (tmp_path / "progress.txt").read_text(encoding="utf-8").endswith(
            "learned something\n"
        )
