"""Duplicate attachment detection and cleanup."""

from .engine import DEFAULT_MIN_SIZE_BYTES, DuplicateFinder, DuplicateFixer, file_age

__all__ = [
    "DEFAULT_MIN_SIZE_BYTES",
    "DuplicateFinder",
    "DuplicateFixer",
    "file_age",
]
