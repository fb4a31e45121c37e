"""The run's error log.

One line per :class:`~notionvault.models.ErrorRecord`::

    [2024-05-01T09:30:12.345Z] Process block 1a2b... (image): Download failed with HTTP 403

Block failures embed ``Process block <block-id>``; retry mode finds the
blocks to replay by scanning for that marker, so it must stay literal.
"""

from __future__ import annotations

import re
from datetime import timezone
from pathlib import Path

from notionvault.models import ErrorRecord
from notionvault.observability import get_logger, kv
from notionvault.utils.fs import write_text_atomic

log = get_logger("notionvault.error_log")

BLOCK_MARKER_RE = re.compile(r"Process block ([a-f0-9-]+)")

_NEWLINES_RE = re.compile(r"\s*[\r\n]+\s*")


def format_timestamp(record: ErrorRecord) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    ts = record.timestamp.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def format_record(record: ErrorRecord) -> str:
    """Render one record as a single log line."""
    message = _NEWLINES_RE.sub(" ", record.message).strip()
    return f"[{format_timestamp(record)}] {record.context}: {message}"


def format_error_log(records: list[ErrorRecord]) -> str:
    return "\n".join(format_record(r) for r in records)


def write_error_log(path: str | Path, records: list[ErrorRecord]) -> Path | None:
    """Write *records* to *path*, or remove a stale log when there are none.

    Returns the path written, or ``None`` when no log remains.
    """
    target = Path(path)
    if records:
        write_text_atomic(target, format_error_log(records) + "\n")
        log.info(
            "Wrote error log",
            extra=kv(op="write_error_log", path=str(target), errors=len(records)),
        )
        return target
    if target.exists():
        target.unlink()
        log.info("Removed stale error log", extra=kv(op="write_error_log", path=str(target)))
    return None


def failed_block_ids(text: str) -> list[str]:
    """Extract the ids of failed blocks, in order of first appearance.

    Examples
    --------
    >>> failed_block_ids("[t] Process block ab-12 (image): x\\n[t] Process block ab-12 (file): y")
    ['ab-12']
    """
    seen: dict[str, None] = {}
    for match in BLOCK_MARKER_RE.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)
