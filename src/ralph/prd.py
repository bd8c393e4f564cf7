"""Reading the task-description document (``prd.json``)."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from ralph.file_io import read_text_or_none
from ralph.schemas import PrdDocument

logger = logging.getLogger(__name__)


def load_prd(path: Path) -> PrdDocument | None:
    """Parse *path*, returning ``None`` when it is missing or not valid JSON."""
    raw = read_text_or_none(path)
    if raw is None or not raw.strip():
        return None
    try:
        return PrdDocument.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Could not parse %s: %s", path, exc.errors()[0]["msg"])
        return None


def read_branch_name(path: Path) -> str | None:
    """Return the PRD's ``branchName``, or ``None`` when absent or empty."""
    prd = load_prd(path)
    if prd is None:
        return None
    branch = (prd.branch_name or "").strip()
    return branch or None
