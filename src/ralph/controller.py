"""Run controller: archive on branch change, then iterate.

One :meth:`RalphController.run` call is one controller invocation:

1. validate the tool and require ``prd.json``;
2. load :class:`RunState` once and let the :class:`BranchArchiver` snapshot
   the previous run if the PRD moved to another branch;
3. make sure ``progress.txt`` exists;
4. run the :class:`RalphLoop` with the tool's prompt.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from collections.abc import Callable
from typing import Any

# Importing the runner modules registers them under "amp" and "claude".
import ralph.amp  # noqa: F401
import ralph.claude_code  # noqa: F401
from ralph.agent_runner import AgentRunner, get_agent_class, list_agents
from ralph.archive import BranchArchiver
from ralph.config import ConfigurationError, RalphConfig
from ralph.loop import RalphLoop
from ralph.prompts import PromptCatalog
from ralph.schemas import LoopResult, RunResult
from ralph.state import StateStore

logger = logging.getLogger(__name__)


def _runner_kwargs(config: RalphConfig) -> dict[str, Any]:
    if config.tool == "amp":
        return {"amp_binary": config.amp_binary}
    if config.tool == "claude":
        return {"claude_binary": config.claude_binary}
    return {}


def validate_tool(tool: str) -> type[AgentRunner]:
    """Return the runner class for *tool* or raise :class:`ConfigurationError`."""
    try:
        return get_agent_class(tool)
    except KeyError:
        choices = "' or '".join(list_agents())
        raise ConfigurationError(f"Invalid tool '{tool}'. Must be '{choices}'.") from None


def build_runner(config: RalphConfig) -> AgentRunner:
    """Instantiate the runner registered for ``config.tool``."""
    cls = validate_tool(config.tool)
    return cls(**_runner_kwargs(config))


class RalphController:
    """Drives one controller invocation for a project directory.

    Parameters
    ----------
    config:
        Resolved run configuration.
    runner:
        Agent runner to use; built from ``config.tool`` when omitted.
    catalog:
        Prompt catalog; defaults to one honouring ``config.template_dir``.
    sleep:
        Sleep function passed to the loop.
    today:
        Date source for archive folder names.
    on_iteration:
        Forwarded to :class:`RalphLoop`.
    """

    def __init__(
        self,
        config: RalphConfig,
        *,
        runner: AgentRunner | None = None,
        catalog: PromptCatalog | None = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Callable[[], dt.date] | None = None,
        on_iteration: Callable[[int, RunResult], None] | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.catalog = catalog or PromptCatalog(template_dir=config.template_dir)
        self.store = StateStore(config)
        self.archiver = BranchArchiver(self.store, today=today)
        self.sleep = sleep
        self.on_iteration = on_iteration

    def check(self) -> None:
        """Raise :class:`ConfigurationError` unless the run can start."""
        validate_tool(self.config.tool)
        if not self.config.prd_file.is_file():
            raise ConfigurationError(
                f"No prd.json found in {self.config.project_dir}\n\n"
                "Ralph requires a prd.json file in your project directory.\n"
                "Run 'ralph init' to set up the project, then create your prd.json."
            )

    def run(self) -> LoopResult:
        """Archive if needed, then iterate until completion or exhaustion."""
        self.check()
        runner = self.runner or build_runner(self.config)
        try:
            prompt = self.catalog.tool_prompt(self.config.tool)
        except KeyError as exc:
            raise ConfigurationError(str(exc.args[0])) from exc

        self.store.ensure_layout()
        state = self.store.load()
        archive = self.archiver.reconcile(state)
        if self.store.init_progress_log():
            logger.info("Created progress log %s", self.config.progress_file)

        loop = RalphLoop(
            runner,
            prompt,
            project_dir=self.config.project_dir,
            tool=self.config.tool,
            max_iterations=self.config.max_iterations,
            sleep_seconds=self.config.sleep_seconds,
            sleep=self.sleep,
            on_iteration=self.on_iteration,
        )
        result = loop.run()
        result.archive = archive
        return result
