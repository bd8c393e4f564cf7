"""Flat-file persistence for the last-branch marker and the progress log.

Layout inside a project::

    prd.json              task description (read-only here)
    progress.txt          append-only log written by the agent
    .ralph/.last-branch   branch of the previous controller invocation
    .ralph/archive/       snapshots of superseded runs

There is no locking: one controller per project directory is assumed.
"""

from __future__ import annotations

import datetime as dt
import logging

from ralph.config import RalphConfig
from ralph.file_io import atomic_write_text, read_text_or_none
from ralph.prd import read_branch_name
from ralph.schemas import RunState

logger = logging.getLogger(__name__)

PROGRESS_TITLE = "Ralph Progress Log"


def progress_header(now: dt.datetime | None = None) -> str:
    """Return the fresh progress-log header stamped with *now*."""
    stamp = (now or dt.datetime.now().astimezone()).strftime("%a %b %d %H:%M:%S %Z %Y")
    # %Z is empty for naive datetimes
    stamp = " ".join(stamp.split())
    return f"# {PROGRESS_TITLE}\nStarted: {stamp}\n---\n"


class StateStore:
    """Reads and writes the controller's project-local state files."""

    def __init__(self, config: RalphConfig) -> None:
        self.config = config

    def ensure_layout(self) -> None:
        """Create ``.ralph/`` and ``.ralph/archive/`` when missing."""
        self.config.archive_dir.mkdir(parents=True, exist_ok=True)

    # -- last branch --

    def read_last_branch(self) -> str | None:
        raw = read_text_or_none(self.config.last_branch_file)
        if raw is None:
            return None
        lines = raw.splitlines()
        branch = lines[0].strip() if lines else ""
        return branch or None

    def write_last_branch(self, branch: str) -> None:
        atomic_write_text(self.config.last_branch_file, f"{branch}\n")

    # -- progress log --

    def reset_progress_log(self, now: dt.datetime | None = None) -> None:
        """Truncate the progress log to a fresh header, discarding all entries."""
        atomic_write_text(self.config.progress_file, progress_header(now))
        logger.debug("Reset progress log %s", self.config.progress_file)

    def init_progress_log(self, now: dt.datetime | None = None) -> bool:
        """Create the progress log with its header unless it already exists."""
        if self.config.progress_file.exists():
            return False
        self.reset_progress_log(now)
        return True

    # -- whole state --

    def load(self) -> RunState:
        """Read both branch identifiers into a :class:`RunState`."""
        return RunState(
            last_branch=self.read_last_branch(),
            current_branch=read_branch_name(self.config.prd_file),
        )

    def save(self, state: RunState) -> None:
        """Persist the current branch as the last branch, when one is known."""
        if state.current_branch:
            self.write_last_branch(state.current_branch)
            state.last_branch = state.current_branch
