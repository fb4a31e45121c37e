"""Token redaction for debug dumps.

Request/response dumps written with ``debug_dump_payload=True`` pass
through :func:`redact` first:

* values under sensitive keys (``authorization``, ``token``, ``secret``,
  ...) are masked;
* the integration token is scrubbed from every string in the tree, and
  any ``Bearer <value>`` pattern is masked;
* signed attachment URLs keep their path but lose their query string,
  which carries the temporary credentials.
"""

from __future__ import annotations

import re
from typing import Any

_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "authorization",
    "cookie",
    "api_key",
})

_BEARER_RE = re.compile(r"(Bearer\s+)\S+")

# Presigned S3-style URLs as returned in ``file.url`` fields.
_SIGNED_URL_RE = re.compile(r"(https?://[^\s?\"']+)\?[^\s\"']*X-Amz-[^\s\"']*")


def _mask_string(value: str, token: str | None) -> str:
    if token and token in value:
        suffix = token[-4:] if len(token) >= 4 else "****"
        placeholder = f"<redacted:...{suffix}>"
        if token in placeholder:
            placeholder = "<redacted>"
        value = value.replace(token, placeholder)
    value = _BEARER_RE.sub(lambda m: f"{m.group(1)}<redacted>", value)
    return _SIGNED_URL_RE.sub(lambda m: f"{m.group(1)}?<signature-redacted>", value)


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return {k: _redact_item(k, v, token) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, str):
        return _mask_string(value, token)
    return value


def _redact_item(key: Any, value: Any, token: str | None) -> Any:
    key_lower = key.lower() if isinstance(key, str) else ""
    if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
        return _mask_string(value, token) if isinstance(value, str) else "<redacted>"
    return _redact_value(value, token)


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a redacted copy of *payload*; the input is never mutated.

    Examples
    --------
    >>> redact({"Authorization": "Bearer ntn_abc123"})
    {'Authorization': 'Bearer <redacted>'}
    """
    return _redact_value(payload, token)


def redact_url(url: str) -> str:
    """Drop the signature query string of a presigned attachment URL.

    Examples
    --------
    >>> redact_url("https://s3.example.com/a/photo.png?X-Amz-Signature=abc")
    'https://s3.example.com/a/photo.png?<signature-redacted>'
    """
    return _mask_string(url, None)
