"""Stamping Notion timestamps onto exported files.

Modification time is portable (:func:`os.utime`).  Creation time is not:
it can only be changed on macOS, through the ``SetFile`` developer tool.
:func:`set_file_timestamps` sets it when that capability exists and
otherwise leaves it alone; neither case is an error.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

from notionvault.observability import get_logger, kv

log = get_logger("notionvault.timestamps")


def _setfile_command() -> str | None:
    return shutil.which("SetFile")


def can_set_creation_time() -> bool:
    """Whether this platform exposes a way to change file creation time."""
    return _setfile_command() is not None


def set_file_timestamps(
    path: str | Path,
    created: datetime | None,
    modified: datetime | None,
) -> None:
    """Set *path*'s modification time to *modified* (or now) and, where
    supported, its creation time to *created*.

    Raises :class:`OSError` only when the modification time cannot be set.
    """
    mtime = (modified or datetime.now().astimezone()).timestamp()
    os.utime(path, (mtime, mtime))

    if created is None:
        return
    setfile = _setfile_command()
    if setfile is None:
        log.debug(
            "Creation time not settable on this platform",
            extra=kv(path=str(path)),
        )
        return
    stamp = created.astimezone().strftime("%m/%d/%Y %H:%M:%S")
    result = subprocess.run(
        [setfile, "-d", stamp, str(path)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        check=False,
    )
    if result.returncode != 0:
        log.debug(
            "SetFile could not set creation time",
            extra=kv(path=str(path), returncode=result.returncode),
        )
