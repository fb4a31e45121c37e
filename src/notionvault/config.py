"""Export configuration for notionvault.

:class:`NotionVaultConfig` captures every tuneable knob of the exporter,
the retrieval layer and the duplicate fixer.  A single instance is shared
by :class:`~notionvault.async_client.AsyncNotionVaultClient`, the tree
exporter and the CLI.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

DEFAULT_OUTPUT_DIR = "./notion"
"""Root of the exported markdown tree."""

DEFAULT_ATTACHMENTS_DIRNAME = "attachments"
"""Flat directory (under the output root) holding every attachment."""

DEFAULT_ERROR_LOG_NAME = "errors.log"
"""Error log written at the end of a run; consumed by retry mode."""


@dataclass
class NotionVaultConfig:
    """Complete configuration for a notionvault run.

    Every parameter has a default so the only *required* value is
    ``token``.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**  Never logged.
    notion_version:
        Value of the ``Notion-Version`` header sent with every request.
        The exporter relies on ``POST /databases/{id}/query``, so the
        default pins the last version that serves it.
    base_url:
        API root URL.  Override for proxy or testing environments.
    output_dir:
        Root directory of the export.
    attachments_dirname:
        Name of the flat attachment directory inside *output_dir*.
    error_log_name:
        Name of the error log inside *output_dir*.
    correction_date:
        Cutoff after which page ``last_edited_time`` values are considered
        corrupted.  When set, pages edited at or after the cutoff get their
        true content edit time recovered from their blocks.
    retry_max_attempts:
        Attempts per API request (including the first) for retryable
        failures (429, 5xx, network errors).
    retry_base_delay:
        Linear backoff step in seconds: attempt *n* waits ``n * base``.
    retry_max_delay:
        Upper cap (seconds) on any single backoff delay.
    rate_limit_rps:
        Target requests per second for client-side pacing.
    timeout_seconds:
        HTTP timeout for API calls and attachment downloads.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    download_max_redirects:
        Redirect hops followed when downloading one attachment.
    max_file_name_length:
        Cap applied to sanitized page, database and attachment names.
    dedup_min_size_bytes:
        Attachments smaller than this are ignored by the duplicate fixer.
    debug_dump_payload:
        Write the (redacted) API request/response to *stderr*.
    """

    # ── Core ────────────────────────────────────────────────────────────
    token: str = ""

    notion_version: str = "2022-06-28"

    base_url: str = "https://api.notion.com/v1"

    # ── Output ──────────────────────────────────────────────────────────
    output_dir: str = DEFAULT_OUTPUT_DIR

    attachments_dirname: str = DEFAULT_ATTACHMENTS_DIRNAME

    error_log_name: str = DEFAULT_ERROR_LOG_NAME

    max_file_name_length: int = 200

    # ── Timestamp recovery ─────────────────────────────────────────────
    correction_date: datetime | None = None

    # ── Retry & rate ────────────────────────────────────────────────────
    retry_max_attempts: int = 3

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    rate_limit_rps: float = 3.0

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    download_max_redirects: int = 5

    # ── Deduplication ──────────────────────────────────────────────────
    dedup_min_size_bytes: int = 64 * 1024

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        from urllib.parse import urlparse

        parsed = urlparse(self.base_url)
        if parsed.scheme == "http" and parsed.hostname not in (
            "localhost",
            "127.0.0.1",
            "::1",
        ):
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{parsed.hostname}'. "
                "Use HTTPS to protect your API token, or target localhost for testing."
            )

        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.rate_limit_rps <= 0:
            raise ValueError(f"rate_limit_rps must be > 0, got {self.rate_limit_rps}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.download_max_redirects < 0:
            raise ValueError(
                f"download_max_redirects must be >= 0, got {self.download_max_redirects}"
            )
        if self.max_file_name_length < 1:
            raise ValueError(
                f"max_file_name_length must be >= 1, got {self.max_file_name_length}"
            )
        if self.dedup_min_size_bytes < 0:
            raise ValueError(
                f"dedup_min_size_bytes must be >= 0, got {self.dedup_min_size_bytes}"
            )

        # Notion timestamps are UTC; a bare date means UTC midnight.
        if self.correction_date is not None and self.correction_date.tzinfo is None:
            self.correction_date = self.correction_date.replace(tzinfo=timezone.utc)

    # ── Derived paths ──────────────────────────────────────────────────

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    @property
    def attachments_path(self) -> Path:
        return self.output_path / self.attachments_dirname

    @property
    def error_log_path(self) -> Path:
        return self.output_path / self.error_log_name

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"NotionVaultConfig({', '.join(parts)})"
