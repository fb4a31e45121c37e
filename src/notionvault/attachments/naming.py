"""File-name derivation for exported pages, databases and attachments."""

from __future__ import annotations

import posixpath
import re
from urllib.parse import unquote, urlparse

# Characters rejected by Windows, macOS or common sync tools.
_ILLEGAL_RE = re.compile(r'[\\/:*?"<>|]')
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_EXTENSION = ".bin"


def sanitize_file_name(name: str, max_length: int = 200, fallback: str = "Untitled") -> str:
    """Make *name* safe as a single path component.

    Illegal characters become ``-``, whitespace runs collapse to one
    space, the result is trimmed and capped at *max_length* characters.
    An empty result yields *fallback*.

    Examples
    --------
    >>> sanitize_file_name('Q1: plans / "draft"')
    'Q1- plans - -draft-'
    >>> sanitize_file_name("   ")
    'Untitled'
    """
    cleaned = _WHITESPACE_RE.sub(" ", _ILLEGAL_RE.sub("-", name)).strip()
    cleaned = cleaned[:max_length].strip()
    if not cleaned or cleaned in (".", ".."):
        return fallback
    return cleaned


def attachment_extension(url: str) -> str:
    """Return the extension of the URL's path (with dot), or ``.bin``.

    Query strings (signed S3 URLs) are ignored.

    Examples
    --------
    >>> attachment_extension("https://s3.example.com/a/b/photo.PNG?X-Amz-Signature=1")
    '.PNG'
    >>> attachment_extension("https://example.com/download")
    '.bin'
    """
    path = unquote(urlparse(url).path)
    ext = posixpath.splitext(posixpath.basename(path))[1]
    if not ext or len(ext) > 16 or _ILLEGAL_RE.search(ext) or " " in ext:
        return DEFAULT_EXTENSION
    return ext


def numbered_name(stem: str, ext: str, counter: int) -> str:
    """``stem + ext`` for counter 0, else ``stem-<counter> + ext``."""
    if counter == 0:
        return f"{stem}{ext}"
    return f"{stem}-{counter}{ext}"


def source_key(url: str) -> str:
    """Identity of the file behind *url*: host and path, no query.

    Signed Notion URLs change their query string on every request but
    keep the path of the uploaded object, so two fetches of the same
    upload share a key and a replaced upload gets a new one.

    >>> source_key("https://s3.example.com/ws/abc/photo.png?X-Amz-Signature=1")
    's3.example.com/ws/abc/photo.png'
    """
    parts = urlparse(url)
    return f"{parts.netloc}{parts.path}"
