"""Interface to the Amp coding agent CLI (``amp``)."""

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


class AmpRunner(AgentRunner):
    """Pipe the prompt into ``amp --dangerously-allow-all``.

    Parameters
    ----------
    amp_binary:
        Path or name of the Amp CLI binary.
    env_overrides:
        Extra environment variables forwarded to the child process.
    echo:
        Callable receiving each output line as it streams; ``None`` mutes.
    """

    name = "Amp"

    def __init__(
        self,
        amp_binary: str = "amp",
        env_overrides: dict[str, str] | None = None,
        echo: Callable[[str], None] | None = echo_to_stderr,
    ) -> None:
        self.amp_binary = amp_binary
        self.env_overrides = env_overrides or {}
        self.echo = echo

    def run(self, project_dir: str | Path, prompt: str) -> RunResult:
        """Execute a single Amp invocation and return its output."""
        project_dir = Path(project_dir).resolve()
        if not project_dir.is_dir():
            return RunResult(
                success=False,
                exit_code=-1,
                errors=[f"project_dir does not exist: {project_dir}"],
            )

        cmd = [resolve_binary(self.amp_binary), "--dangerously-allow-all"]
        logger.debug("Running Amp CLI (cwd=%s, prompt_len=%d)", project_dir, len(prompt))

        start = time.monotonic()
        try:
            execution = execute_tee_command(
                cmd=cmd,
                cwd=project_dir,
                env={**os.environ, **self.env_overrides},
                stdin_text=prompt,
                echo=self.echo,
                process_name="Amp",
            )
        except OSError as exc:
            return RunResult(
                success=False,
                exit_code=-1,
                errors=[f"Failed to execute amp: {exc}"],
                duration_seconds=time.monotonic() - start,
            )

        return RunResult(
            success=execution.exit_code == 0,
            exit_code=execution.exit_code,
            output=execution.output,
            errors=[] if execution.exit_code == 0 else [f"Amp exited with status {execution.exit_code}"],
            duration_seconds=time.monotonic() - start,
        )


register_agent("amp", AmpRunner)
