"""Structured JSON logger for notionvault.

Every log record is emitted as a single-line JSON object on *stderr*, so
an export of a large workspace can be piped into ``jq`` or a log
aggregator without extra parsing.  Human-facing progress and the final
summary are printed by the CLI, not logged.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "INFO",
     "logger": "notionvault.exporter", "message": "page exported",
     "page_id": "abc123", "path": "Projects/Roadmap.md"}

Usage::

    from notionvault.observability import get_logger, kv

    log = get_logger("notionvault.exporter")
    log.info("page exported", extra=kv(page_id="abc", path="Roadmap.md"))
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER = "notionvault"


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Guaranteed keys: ``ts`` (ISO-8601 UTC), ``level``, ``logger`` and
    ``message``.  Fields passed through ``extra={"extra_fields": {...}}``
    (see :func:`kv`) are merged into the top-level object; exception and
    stack information are serialised when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def kv(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` mapping understood by :class:`StructuredFormatter`."""
    return {"extra_fields": fields}


# One handler per process: child loggers ("notionvault.transport",
# "notionvault.exporter", ...) propagate to the root package logger.
_configured = False


def get_logger(
    name: str = ROOT_LOGGER,
    *,
    stream: Any | None = None,
) -> logging.Logger:
    """Get a logger whose records end up on the structured handler.

    The handler is attached once, to the ``notionvault`` root logger;
    repeated calls never add duplicate handlers.

    Parameters
    ----------
    name:
        Logger name, normally ``"notionvault.<component>"``.
    stream:
        Output stream for the handler the first time it is created.
        Defaults to ``sys.stderr``.
    """
    global _configured

    if not _configured:
        root = logging.getLogger(ROOT_LOGGER)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
        # Keep records away from any handler configured on the root logger.
        root.propagate = False
        _configured = True

    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Set the minimum level of every notionvault logger.

    Accepts an ``int`` (``logging.INFO``) or a case-insensitive level name.
    """
    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    get_logger().setLevel(resolved)
