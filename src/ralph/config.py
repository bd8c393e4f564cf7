"""Run configuration resolved from CLI flags and the environment.

Every setting has an environment variable fallback so a project's ``.env``
(loaded by the CLI through python-dotenv) can pin its defaults:

- ``RALPH_TOOL`` - agent tool identifier (``amp`` or ``claude``)
- ``RALPH_MAX_ITERATIONS`` - iteration budget
- ``RALPH_SLEEP_SECONDS`` - pause between iterations
- ``RALPH_HOME`` - directory holding ``prompt.md`` / ``CLAUDE.md`` overrides
- ``RALPH_BRANCH_PREFIX`` - namespace stripped from archive folder names
- ``AMP_BIN`` / ``CLAUDE_BIN`` - agent executables
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_TOOL = "amp"
DEFAULT_MAX_ITERATIONS = 10
DEFAULT_SLEEP_SECONDS = 2.0
DEFAULT_BRANCH_PREFIX = "ralph/"

PRD_FILENAME = "prd.json"
PROGRESS_FILENAME = "progress.txt"
STATE_DIRNAME = ".ralph"
ARCHIVE_DIRNAME = "archive"
LAST_BRANCH_FILENAME = ".last-branch"

_ENV_FIELDS: dict[str, str] = {
    "tool": "RALPH_TOOL",
    "max_iterations": "RALPH_MAX_ITERATIONS",
    "sleep_seconds": "RALPH_SLEEP_SECONDS",
    "template_dir": "RALPH_HOME",
    "branch_prefix": "RALPH_BRANCH_PREFIX",
    "amp_binary": "AMP_BIN",
    "claude_binary": "CLAUDE_BIN",
}


class ConfigurationError(ValueError):
    """Fatal setup problem reported before any iteration runs."""


class RalphConfig(BaseModel):
    """Resolved settings for one controller invocation."""

    project_dir: Path = Field(default_factory=Path.cwd)
    tool: str = DEFAULT_TOOL
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    sleep_seconds: float = DEFAULT_SLEEP_SECONDS
    template_dir: Path | None = None
    branch_prefix: str = DEFAULT_BRANCH_PREFIX
    amp_binary: str = "amp"
    claude_binary: str = "claude"

    @field_validator("tool")
    @classmethod
    def _normalize_tool(cls, value: str) -> str:
        return (value or "").strip()

    @field_validator("max_iterations")
    @classmethod
    def _check_max_iterations(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_iterations must be >= 1")
        return value

    @field_validator("sleep_seconds")
    @classmethod
    def _check_sleep(cls, value: float) -> float:
        if value < 0:
            raise ValueError("sleep_seconds must be >= 0")
        return value

    # -- derived paths --

    @property
    def prd_file(self) -> Path:
        return self.project_dir / PRD_FILENAME

    @property
    def progress_file(self) -> Path:
        return self.project_dir / PROGRESS_FILENAME

    @property
    def state_dir(self) -> Path:
        return self.project_dir / STATE_DIRNAME

    @property
    def archive_dir(self) -> Path:
        return self.state_dir / ARCHIVE_DIRNAME

    @property
    def last_branch_file(self) -> Path:
        return self.state_dir / LAST_BRANCH_FILENAME

    @classmethod
    def from_env(cls, **overrides: Any) -> RalphConfig:
        """Build a config from environment variables, letting *overrides* win.

        ``None`` overrides are ignored so argparse defaults can be passed
        straight through. Invalid values raise :class:`ConfigurationError`.
        """
        values: dict[str, Any] = {}
        for field_name, env_name in _ENV_FIELDS.items():
            raw = os.environ.get(env_name, "").strip()
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            config = cls.model_validate(values)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {details}") from exc
        config.project_dir = config.project_dir.expanduser().resolve()
        if config.template_dir is not None:
            config.template_dir = config.template_dir.expanduser().resolve()
        logger.debug("Resolved configuration: %s", config.model_dump_json())
        return config
