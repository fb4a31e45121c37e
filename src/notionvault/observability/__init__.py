"""Observability: structured logging and metrics hooks for notionvault."""

from __future__ import annotations

from .logger import StructuredFormatter, get_logger, kv, set_level
from .metrics import MetricsHook, NoopMetricsHook

__all__ = [
    "MetricsHook",
    "NoopMetricsHook",
    "StructuredFormatter",
    "get_logger",
    "kv",
    "set_level",
]
