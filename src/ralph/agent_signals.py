"""Completion sentinel shared by prompts and the iteration loop."""

from __future__ import annotations

COMPLETION_SENTINEL = "<promise>COMPLETE</promise>"
"""Literal marker an agent prints once every story in the PRD passes."""


def contains_completion_signal(text: str) -> bool:
    """Return True when *text* contains the completion sentinel verbatim."""
    if not text:
        return False
    return COMPLETION_SENTINEL in text

