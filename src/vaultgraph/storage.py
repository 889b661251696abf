"""Raw UTF-8 file access with whole-file atomic replacement."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read *path* as UTF-8 without newline translation."""
    return path.read_bytes().decode("utf-8")


def atomic_write(path: Path, text: str) -> None:
    """Replace *path* with *text*, or leave it untouched on failure.

    The new content is written to a temporary file in the same directory and
    moved over the original with :func:`os.replace`.
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(text.encode("utf-8"))
            fh.flush()
            os.fsync(fh.fileno())
        mode = path.stat().st_mode & 0o777 if path.exists() else 0o644
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    logger.debug("Wrote %s (%d chars)", path, len(text))
