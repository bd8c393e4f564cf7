"""Iteration loop.

The :class:`RalphLoop` feeds the same prompt to an agent runner again and
again until the agent prints the completion sentinel or the iteration budget
runs out. Agent exit codes are ignored; only the captured output matters.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from collections.abc import Callable
from pathlib import Path

from ralph.agent_runner import AgentRunner
from ralph.schemas import LoopResult, RunResult, StopReason

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_MAX_ITERATIONS: int = 10

DEFAULT_SLEEP_SECONDS: float = 2.0
"""Pause between iterations so a failing agent is not hammered in a tight loop."""


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

class RalphLoop:
    """Runs up to ``max_iterations`` agent passes, stopping at the sentinel.

    Parameters
    ----------
    runner:
        Any :class:`AgentRunner`; the loop only uses :meth:`AgentRunner.run`.
    prompt:
        Prompt text sent on every pass.
    project_dir:
        Working directory handed to the runner.
    tool:
        Tool identifier, used in progress announcements.
    max_iterations:
        Iteration budget; must be >= 1.
    sleep_seconds:
        Delay between passes. ``0`` disables it.
    sleep:
        Sleep function (``time.sleep`` by default); injectable for tests.
    on_iteration:
        Optional callback invoked with ``(iteration, run_result)`` after every
        pass.
    """

    def __init__(
        self,
        runner: AgentRunner,
        prompt: str,
        *,
        project_dir: str | Path,
        tool: str,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        sleep_seconds: float = DEFAULT_SLEEP_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        on_iteration: Callable[[int, RunResult], None] | None = None,
    ) -> None:
        try:
            parsed_max = int(max_iterations)
        except (TypeError, ValueError) as exc:
            raise ValueError("max_iterations must be a positive integer") from exc
        if parsed_max < 1:
            raise ValueError("max_iterations must be >= 1")
        if sleep_seconds < 0:
            raise ValueError("sleep_seconds must be >= 0")

        self.runner = runner
        self.prompt = prompt
        self.project_dir = Path(project_dir)
        self.tool = tool
        self.max_iterations = parsed_max
        self.sleep_seconds = float(sleep_seconds)
        self._sleep = sleep
        self.on_iteration = on_iteration

    def run(self) -> LoopResult:
        """Execute the loop and return its terminal outcome."""
        result = LoopResult(
            outcome=StopReason.EXHAUSTED,
            max_iterations=self.max_iterations,
            tool=self.tool,
        )
        logger.info(
            "Starting Ralph - Tool: %s - Max iterations: %d",
            self.tool,
            self.max_iterations,
        )

        for iteration in range(1, self.max_iterations + 1):
            logger.info(
                "──── Ralph Iteration %d of %d (%s) ────",
                iteration,
                self.max_iterations,
                self.tool,
            )
            run_result = self.runner.run(self.project_dir, self.prompt)
            result.iterations = iteration
            if not run_result.success:
                logger.warning(
                    "%s exited with status %d; continuing (%s)",
                    self.runner.name,
                    run_result.exit_code,
                    "; ".join(run_result.errors) or "no error output",
                )

            if self.on_iteration is not None:
                self.on_iteration(iteration, run_result)

            if run_result.completed:
                result.outcome = StopReason.COMPLETED
                logger.info("Completion signal received at iteration %d", iteration)
                break

            logger.info("Iteration %d complete. Continuing...", iteration)
            if iteration < self.max_iterations and self.sleep_seconds > 0:
                self._sleep(self.sleep_seconds)

        result.finished_at = dt.datetime.now(dt.timezone.utc).isoformat()
        logger.info("Loop finished: %s (%d iterations)", result.outcome.value, result.iterations)
        return result
