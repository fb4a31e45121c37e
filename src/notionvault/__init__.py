"""notionvault: export a Notion workspace to a markdown vault.

Public re-exports
-----------------

* **Client:** :class:`AsyncNotionVaultClient`
* **Configuration:** :class:`NotionVaultConfig`
* **Errors:** Every :class:`NotionVaultError` subclass and :class:`ErrorCode`
* **Models:** Content model, run report and deduplication types

Usage::

    import asyncio
    from notionvault import AsyncNotionVaultClient

    async def main():
        async with AsyncNotionVaultClient(token="secret_xxx") as client:
            report = await client.export_workspace()
            print(report.stats)

    asyncio.run(main())
"""

from __future__ import annotations

# ── Client ─────────────────────────────────────────────────────────────
from notionvault.async_client import AsyncNotionVaultClient

# ── Configuration ───────────────────────────────────────────────────────
from notionvault.config import NotionVaultConfig

# ── Errors ──────────────────────────────────────────────────────────────
from notionvault.errors import (
    ErrorCode,
    NotionVaultAttachmentError,
    NotionVaultAuthError,
    NotionVaultConversionError,
    NotionVaultError,
    NotionVaultNetworkError,
    NotionVaultNotFoundError,
    NotionVaultPermissionError,
    NotionVaultResolutionError,
    NotionVaultRetryExhaustedError,
    NotionVaultValidationError,
)

# ── Models ──────────────────────────────────────────────────────────────
from notionvault.models import (
    Block,
    BlockType,
    Database,
    DedupResult,
    DuplicatePair,
    ErrorRecord,
    ExportReport,
    ExportStats,
    FileTimes,
    MaterializedAttachment,
    Page,
    RichTextRun,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Client
    "AsyncNotionVaultClient",
    # Configuration
    "NotionVaultConfig",
    # Error base + code enum
    "NotionVaultError",
    "ErrorCode",
    # API / transport errors
    "NotionVaultValidationError",
    "NotionVaultAuthError",
    "NotionVaultPermissionError",
    "NotionVaultNotFoundError",
    "NotionVaultRetryExhaustedError",
    "NotionVaultNetworkError",
    # Export errors
    "NotionVaultConversionError",
    "NotionVaultAttachmentError",
    "NotionVaultResolutionError",
    # Models: content
    "Block",
    "BlockType",
    "Page",
    "Database",
    "RichTextRun",
    # Models: run bookkeeping
    "ExportReport",
    "ExportStats",
    "ErrorRecord",
    "FileTimes",
    "MaterializedAttachment",
    # Models: deduplication
    "DuplicatePair",
    "DedupResult",
]

__version__ = "0.1.0"
