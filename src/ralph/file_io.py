"""Text I/O helpers with atomic writes and best-effort copies."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import time
from contextlib import suppress
from pathlib import Path

logger = logging.getLogger(__name__)

_ATOMIC_REPLACE_MAX_RETRIES = 8
_ATOMIC_REPLACE_RETRY_SECONDS = 0.01


def _replace_file_with_retry(src: Path, dst: Path) -> None:
    last_error: OSError | None = None
    for attempt in range(_ATOMIC_REPLACE_MAX_RETRIES):
        try:
            src.replace(dst)
            return
        except PermissionError as exc:
            last_error = exc
        except OSError as exc:
            if exc.errno != 13:
                raise
            last_error = exc
        if attempt < _ATOMIC_REPLACE_MAX_RETRIES - 1:
            time.sleep(_ATOMIC_REPLACE_RETRY_SECONDS * (attempt + 1))
    if last_error is not None:
        raise last_error


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to disk atomically to avoid partial/corrupt files."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
        _replace_file_with_retry(tmp_path, path)
    finally:
        with suppress(OSError):
            tmp_path.unlink(missing_ok=True)


def read_text_or_none(path: Path, *, encoding: str = "utf-8") -> str | None:
    """Return the file's text, or ``None`` when it is missing or unreadable."""
    try:
        return path.read_text(encoding=encoding, errors="replace")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None


def copy_if_exists(src: Path, dest_dir: Path) -> bool:
    """Copy *src* into *dest_dir*, overwriting; return False when *src* is absent."""
    if not src.is_file():
        logger.debug("Skipping copy of missing file %s", src)
        return False
    try:
        shutil.copy2(src, dest_dir / src.name)
    except OSError as exc:
        logger.warning("Could not copy %s to %s: %s", src, dest_dir, exc)
        return False
    return True
