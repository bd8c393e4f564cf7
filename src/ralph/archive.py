"""Archiving of the previous run when the PRD switches to a new branch.

When ``prd.json`` names a different branch than the one recorded by the last
invocation, the old ``prd.json`` and ``progress.txt`` are copied to
``.ralph/archive/<YYYY-MM-DD>-<previous branch>/`` and the progress log starts
over. The folder name comes from the *previous* branch with its namespace
prefix (``ralph/`` by default) removed.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable

from ralph.file_io import copy_if_exists
from ralph.schemas import ArchiveEntry, RunState
from ralph.state import StateStore

logger = logging.getLogger(__name__)


def strip_branch_prefix(branch: str, prefix: str) -> str:
    """Remove a leading namespace *prefix* from *branch* (once)."""
    if prefix and branch.startswith(prefix):
        return branch[len(prefix):]
    return branch


def archive_key(day: dt.date, branch: str, prefix: str) -> str:
    """Return the archive folder name for *branch* archived on *day*."""
    return f"{day.isoformat()}-{strip_branch_prefix(branch, prefix)}"


class BranchArchiver:
    """Detects branch transitions and snapshots the superseded run.

    Parameters
    ----------
    store:
        State store for the project being archived.
    today:
        Callable returning the current date; injectable for tests.
    """

    def __init__(
        self,
        store: StateStore,
        *,
        today: Callable[[], dt.date] | None = None,
    ) -> None:
        self.store = store
        self.today = today or dt.date.today

    def reconcile(self, state: RunState) -> ArchiveEntry | None:
        """Archive and reset on a transition, then record the current branch.

        Returns the created :class:`ArchiveEntry`, or ``None`` when no
        transition happened.
        """
        entry: ArchiveEntry | None = None
        if state.branch_changed:
            entry = self.archive(state.last_branch or "")
            self.store.reset_progress_log()
        self.store.save(state)
        return entry

    def archive(self, branch: str) -> ArchiveEntry:
        """Copy ``prd.json`` and ``progress.txt`` into the folder for *branch*."""
        config = self.store.config
        key = archive_key(self.today(), branch, config.branch_prefix)
        folder = config.archive_dir / key
        logger.info("Archiving previous run: %s", branch)
        folder.mkdir(parents=True, exist_ok=True)

        copied = [
            src.name
            for src in (config.prd_file, config.progress_file)
            if copy_if_exists(src, folder)
        ]
        logger.info("Archived to: %s", folder)
        return ArchiveEntry(key=key, path=str(folder), branch=branch, files=copied)
