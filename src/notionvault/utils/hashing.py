"""Content hashing for duplicate detection.

Attachments are compared by SHA-256 of their bytes.  Files can be large
(videos, PDFs), so they are streamed in fixed-size chunks rather than
read whole.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: str | Path) -> str:
    """Return the hex-encoded SHA-256 digest of the file at *path*."""
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
