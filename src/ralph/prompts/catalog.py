"""Prompt catalog - the fixed prompt each agent tool receives every iteration.

Built-in prompts live in ``templates.yaml`` next to this module. A template
directory (``RALPH_HOME`` or ``--template-dir``) can replace them with plain
markdown files, using the same names as a classic Ralph checkout:

* ``prompt.md`` - Amp prompt
* ``CLAUDE.md`` - Claude Code prompt
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_BUILTIN_YAML = Path(__file__).resolve().parent / "templates.yaml"

TEMPLATE_FILENAMES: dict[str, str] = {
    "amp": "prompt.md",
    "claude": "CLAUDE.md",
}


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping, returning an empty dict on failure."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


class PromptCatalog:
    """Serves per-tool prompts, preferring files from *template_dir*.

    Usage::

        catalog = PromptCatalog(template_dir=Path("~/ralph").expanduser())
        prompt = catalog.tool_prompt("claude")
    """

    def __init__(self, template_dir: Path | None = None, *, builtin: Path = _BUILTIN_YAML) -> None:
        self.template_dir = template_dir
        self._data = _load_yaml(builtin)

    def template_path(self, tool: str) -> Path | None:
        """Return the override file for *tool* when one exists on disk."""
        if self.template_dir is None:
            return None
        filename = TEMPLATE_FILENAMES.get(tool)
        if filename is None:
            return None
        candidate = self.template_dir / filename
        return candidate if candidate.is_file() else None

    def tool_prompt(self, tool: str) -> str:
        """Return the prompt text for *tool*; ``KeyError`` when none is defined."""
        override = self.template_path(tool)
        if override is not None:
            logger.debug("Using prompt template %s", override)
            text = override.read_text(encoding="utf-8")
        else:
            entry = self._data.get("tools", {}).get(tool, {})
            text = (entry.get("prompt") or "") if isinstance(entry, dict) else ""
        if not text.strip():
            raise KeyError(f"No prompt template defined for tool '{tool}'")
        return text

    def prd_example(self) -> str:
        """Return the example ``prd.json`` shown by ``ralph init``."""
        return (self._data.get("prd_example") or "").strip()

