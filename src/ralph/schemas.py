"""Pydantic models for structured data throughout the loop."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ralph.agent_signals import contains_completion_signal


def _utc_now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Agent run results
# ---------------------------------------------------------------------------

class RunResult(BaseModel):
    """Captured result of a single agent CLI invocation."""

    success: bool = False
    exit_code: int = -1
    output: str = ""
    errors: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def completed(self) -> bool:
        """True when the captured output carries the completion sentinel."""
        return contains_completion_signal(self.output)


# ---------------------------------------------------------------------------
# Task-description document
# ---------------------------------------------------------------------------

class PrdDocument(BaseModel):
    """The slice of ``prd.json`` the loop cares about.

    Everything besides ``branchName`` belongs to the PRD tooling and is kept
    as opaque extra data.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    branch_name: str | None = Field(default=None, alias="branchName")


# ---------------------------------------------------------------------------
# Controller state
# ---------------------------------------------------------------------------

class RunState(BaseModel):
    """Mutable controller state shared by the archiver and loop phases."""

    last_branch: str | None = None
    current_branch: str | None = None

    @property
    def branch_changed(self) -> bool:
        """True when both identifiers are known and differ."""
        return bool(
            self.last_branch
            and self.current_branch
            and self.last_branch != self.current_branch
        )


class ArchiveEntry(BaseModel):
    """Snapshot of a superseded run under ``.ralph/archive/<key>``."""

    model_config = ConfigDict(frozen=True)

    key: str
    path: str
    branch: str
    archived_at: str = Field(default_factory=_utc_now)
    files: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Loop outcome
# ---------------------------------------------------------------------------

class StopReason(str, Enum):
    """Terminal outcome of the iteration loop."""

    COMPLETED = "completed"
    EXHAUSTED = "exhausted"


class LoopResult(BaseModel):
    """Summary of one controller invocation's iteration loop."""

    outcome: StopReason
    iterations: int = 0
    max_iterations: int
    tool: str
    started_at: str = Field(default_factory=_utc_now)
    finished_at: str | None = None
    archive: ArchiveEntry | None = None

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 when completed, 1 when the budget ran out."""
        return 0 if self.outcome == StopReason.COMPLETED else 1
