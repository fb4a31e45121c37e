"""Workspace export: tree walk, edit-time recovery, error log, retry."""

from .error_log import failed_block_ids, format_record, write_error_log
from .recovery import recover_true_edit_time
from .retry import MAX_PARENT_DEPTH, RetryController
from .tree import TreeExporter

__all__ = [
    "MAX_PARENT_DEPTH",
    "RetryController",
    "TreeExporter",
    "failed_block_ids",
    "format_record",
    "recover_true_edit_time",
    "write_error_log",
]
