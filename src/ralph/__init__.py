"""Ralph - run an AI coding agent in a loop until the PRD is done."""

from importlib.metadata import PackageNotFoundError, version

from ralph.schemas import ArchiveEntry, LoopResult, RunResult, RunState, StopReason

__all__ = ["ArchiveEntry", "LoopResult", "RunResult", "RunState", "StopReason"]

try:
    __version__ = version("ralph-loop")
except PackageNotFoundError:
    __version__ = "0.0.0"
