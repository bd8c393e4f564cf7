"""Interface to Anthropic Claude Code CLI (``claude``)."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from ralph.agent_runner import AgentRunner, register_agent
from ralph.runner_common import echo_to_stderr, execute_tee_command, resolve_binary
from ralph.schemas import RunResult

logger = logging.getLogger(__name__)


class ClaudeCodeRunner(AgentRunner):
    """Spawn ``claude --print`` with the prompt on stdin.

    Claude Code runs autonomously with permission prompts disabled::

        claude --dangerously-skip-permissions --print --verbose < CLAUDE.md

    Output is plain text; stdout and stderr are merged, echoed to the
    operator and captured for sentinel detection.

    Parameters
    ----------
    claude_binary:
        Path or name of the Claude Code CLI binary.
    env_overrides:
        Extra environment variables forwarded to the child process.
    echo:
        Callable receiving each output line as it streams; ``None`` mutes.
    """

    name = "Claude Code"

    def __init__(
        self,
        claude_binary: str = "claude",
        env_overrides: dict[str, str] | None = None,
        echo: Callable[[str], None] | None = echo_to_stderr,
    ) -> None:
        self.claude_binary = claude_binary
        self.env_overrides = env_overrides or {}
        self.echo = echo

    def run(self, project_dir: str | Path, prompt: str) -> RunResult:
        """Execute a single Claude Code invocation and return its output."""
        project_dir = Path(project_dir).resolve()
        if not project_dir.is_dir():
            return RunResult(
                success=False,
                exit_code=-1,
                errors=[f"project_dir does not exist: {project_dir}"],
            )

        cmd = self._build_command()
        logger.debug("Running Claude Code CLI (cwd=%s, prompt_len=%d)", project_dir, len(prompt))

        start = time.monotonic()
        try:
            execution = execute_tee_command(
                cmd=cmd,
                cwd=project_dir,
                env={**os.environ, **self.env_overrides},
                stdin_text=prompt,
                echo=self.echo,
                process_name="Claude Code",
            )
        except OSError as exc:
            return RunResult(
                success=False,
                exit_code=-1,
                errors=[f"Failed to execute claude: {exc}"],
                duration_seconds=time.monotonic() - start,
            )

        errors: list[str] = []
        if execution.exit_code != 0:
            errors.append(f"Claude Code exited with status {execution.exit_code}")
        return RunResult(
            success=execution.exit_code == 0,
            exit_code=execution.exit_code,
            output=execution.output,
            errors=errors,
            duration_seconds=time.monotonic() - start,
        )

    def _build_command(self) -> list[str]:
        return [
            resolve_binary(self.claude_binary),
            "--dangerously-skip-permissions",
            "--print",
            "--verbose",
        ]


# ── Register with the agent registry ─────────────────────────────
register_agent("claude", ClaudeCodeRunner)
