"""Shared helpers for CLI runner implementations."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
import threading
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import IO

logger = logging.getLogger(__name__)


def resolve_binary(name: str) -> str:
    """Resolve a binary name to a full executable path when possible."""
    expanded = os.path.expandvars(os.path.expanduser(str(name or "").strip()))
    if len(expanded) >= 2 and expanded[0] == expanded[-1] and expanded[0] in {"'", '"'}:
        # Accept copy/paste paths wrapped in shell quotes.
        expanded = expanded[1:-1].strip()
    if not expanded:
        return ""
    resolved = shutil.which(expanded)
    if resolved:
        return resolved
    return expanded


def echo_to_stderr(chunk: str) -> None:
    """Default tee target: forward agent output to the operator's terminal."""
    sys.stderr.write(chunk)
    sys.stderr.flush()


@dataclass(slots=True)
class TeeExecutionResult:
    """Captured combined output and exit status of a runner subprocess."""

    output: str
    exit_code: int


def execute_tee_command(
    *,
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    stdin_text: str | None = None,
    echo: Callable[[str], None] | None = echo_to_stderr,
    process_name: str = "agent",
) -> TeeExecutionResult:
    """Run *cmd* with stderr merged into stdout, streaming and capturing it.

    Every line the child writes is handed to *echo* as it arrives and is also
    kept for the returned :class:`TeeExecutionResult`, so nothing is lost to
    either the operator or the caller. ``OSError`` from launching the process
    propagates to the caller.
    """
    proc = subprocess.Popen(
        cmd,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        stdin=subprocess.PIPE if stdin_text is not None else subprocess.DEVNULL,
        text=True,
        encoding="utf-8",
        errors="replace",
        env=env,
    )
    if proc.stdout is None:
        raise RuntimeError(f"{process_name} subprocess stdout pipe is unexpectedly unavailable")

    def _pump_stdin(stream: IO[str], text: str) -> None:
        try:
            stream.write(text)
            if text and not text.endswith("\n"):
                stream.write("\n")
            stream.flush()
        except OSError:
            # Child exited before reading its prompt; its output tells the story.
            logger.debug("%s stdin write failed", process_name)
        finally:
            with suppress(OSError):
                stream.close()

    stdin_thread: threading.Thread | None = None
    if stdin_text is not None and proc.stdin is not None:
        stdin_thread = threading.Thread(
            target=_pump_stdin,
            args=(proc.stdin, stdin_text),
            daemon=True,
        )
        stdin_thread.start()

    chunks: list[str] = []
    try:
        for line in proc.stdout:
            chunks.append(line)
            if echo is not None:
                echo(line)
        proc.wait()
    finally:
        if stdin_thread is not None:
            stdin_thread.join(timeout=1.0)
        if not proc.stdout.closed:
            proc.stdout.close()

    return TeeExecutionResult(
        output="".join(chunks),
        exit_code=proc.returncode if proc.returncode is not None else -1,
    )
