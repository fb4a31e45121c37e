"""Whole-file writes.

Exported markdown files and rewritten references are always written as
complete files: the content goes to a sibling temporary file that is
then renamed over the target, so an interrupted run never leaves a
truncated file behind.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _default_file_mode() -> int:
    """Mode a plain ``open(path, "w")`` would create under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomic(path: str | Path, content: str) -> Path:
    """Write *content* (UTF-8) to *path*, creating parent directories.

    The file gets the same permissions a plain write would (``mkstemp``
    alone creates owner-only files).  Returns the target path.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target
