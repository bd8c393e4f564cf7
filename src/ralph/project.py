"""``ralph init``: prepare a project directory for the loop."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ralph.config import ARCHIVE_DIRNAME, LAST_BRANCH_FILENAME, PRD_FILENAME, STATE_DIRNAME
from ralph.file_io import atomic_write_text

logger = logging.getLogger(__name__)

GITIGNORE_CONTENT = (
    "# Ralph state files (project-specific, not shared)\n"
    f"{LAST_BRANCH_FILENAME}\n"
)


@dataclass(frozen=True)
class InitReport:
    """What ``init_project`` found and created."""

    project_dir: Path
    state_dir: Path
    created_gitignore: bool
    has_prd: bool


def init_project(project_dir: Path) -> InitReport:
    """Create ``.ralph/`` (with ``archive/`` and a ``.gitignore``) under *project_dir*.

    An existing ``.gitignore`` is left untouched.
    """
    state_dir = project_dir / STATE_DIRNAME
    (state_dir / ARCHIVE_DIRNAME).mkdir(parents=True, exist_ok=True)

    gitignore = state_dir / ".gitignore"
    created_gitignore = False
    if not gitignore.exists():
        atomic_write_text(gitignore, GITIGNORE_CONTENT)
        created_gitignore = True
        logger.debug("Wrote %s", gitignore)

    return InitReport(
        project_dir=project_dir,
        state_dir=state_dir,
        created_gitignore=created_gitignore,
        has_prd=(project_dir / PRD_FILENAME).is_file(),
    )
