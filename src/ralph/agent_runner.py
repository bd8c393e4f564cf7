"""Agent runner capability and the tool registry.

Each supported ``--tool`` value maps to one :class:`AgentRunner` subclass.
Runner modules register themselves on import; the controller looks the
class up by tool id and the loop only ever sees the abstract interface.
"""

from __future__ import annotations

import abc
from pathlib import Path

from ralph.schemas import RunResult


class AgentRunner(abc.ABC):
    """One coding-agent CLI, invoked once per loop iteration."""

    #: Label used in log messages (e.g. "Amp", "Claude Code").
    name: str = "base"

    @abc.abstractmethod
    def run(self, project_dir: str | Path, prompt: str) -> RunResult:
        """Feed *prompt* to the agent inside *project_dir* and capture its output.

        A non-zero exit status is reported on the result, never raised.
        """


# ── Registry ──────────────────────────────────────────────────────

_RUNNERS: dict[str, type[AgentRunner]] = {}


def register_agent(tool: str, cls: type[AgentRunner]) -> None:
    """Make *cls* selectable as ``--tool <tool>``.

    Re-registering the same class is a no-op; claiming a tool id that
    already maps to another class is an error.
    """
    tool_id = tool.strip() if isinstance(tool, str) else ""
    if not tool_id:
        raise ValueError("Tool id must be a non-empty string")
    if not (isinstance(cls, type) and issubclass(cls, AgentRunner)):
        raise TypeError(f"{cls!r} is not an AgentRunner subclass")

    current = _RUNNERS.setdefault(tool_id, cls)
    if current is not cls:
        raise ValueError(f"Tool '{tool_id}' already maps to {current.__name__}")


def get_agent_class(tool: str) -> type[AgentRunner]:
    """Return the runner class for *tool*; ``KeyError`` for unknown ids."""
    try:
        return _RUNNERS[tool]
    except KeyError:
        known = ", ".join(list_agents()) or "(none)"
        raise KeyError(f"No runner registered for tool '{tool}' (known: {known})") from None


def list_agents() -> list[str]:
    """Return the registered tool ids, sorted."""
    return sorted(_RUNNERS)
