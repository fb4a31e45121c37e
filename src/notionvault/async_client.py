"""Asynchronous notionvault client.

:class:`AsyncNotionVaultClient` wires the retrieval layer, the attachment
materializer, the tree exporter and the retry controller around one
:class:`~notionvault.config.NotionVaultConfig`.

Usage::

    import asyncio
    from notionvault import AsyncNotionVaultClient

    async def main():
        async with AsyncNotionVaultClient(token="secret_xxx", output_dir="./notion") as client:
            report = await client.export_workspace()
            print(report.stats)

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

import httpx

from notionvault.attachments import AttachmentMaterializer
from notionvault.config import NotionVaultConfig
from notionvault.dedup import DuplicateFinder, DuplicateFixer
from notionvault.exporter import RetryController, TreeExporter
from notionvault.models import DedupResult, DuplicatePair, ExportReport
from notionvault.notion_api import (
    AsyncBlockAPI,
    AsyncDatabaseAPI,
    AsyncNotionTransport,
    AsyncPageAPI,
    AsyncSearchAPI,
    AsyncUserAPI,
)


class AsyncNotionVaultClient:
    """Asynchronous Notion workspace exporter.

    Parameters
    ----------
    token:
        Notion integration token.  **Required.**
    http_client:
        Optional ``httpx.AsyncClient`` for API calls (tests).
    download_client:
        Optional ``httpx.AsyncClient`` for attachment downloads (tests).
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`NotionVaultConfig`.
    """

    def __init__(
        self,
        token: str,
        http_client: httpx.AsyncClient | None = None,
        download_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = NotionVaultConfig(token=token, **kwargs)
        self._transport = AsyncNotionTransport(self._config, client=http_client)
        self._blocks = AsyncBlockAPI(self._transport)
        self._pages = AsyncPageAPI(self._transport)
        self._databases = AsyncDatabaseAPI(self._transport)
        self._search = AsyncSearchAPI(self._transport)
        self._users = AsyncUserAPI(self._transport)
        self._materializer = AttachmentMaterializer(self._config, client=download_client)
        self._exporter = TreeExporter(
            self._config,
            blocks=self._blocks,
            pages=self._pages,
            databases=self._databases,
            search=self._search,
            users=self._users,
            materializer=self._materializer,
        )

    @property
    def config(self) -> NotionVaultConfig:
        return self._config

    @property
    def exporter(self) -> TreeExporter:
        return self._exporter

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    async def export_workspace(self) -> ExportReport:
        """Export every page and database shared with the integration."""
        return await self._exporter.export_workspace()

    async def export_page(self, page_id: str) -> ExportReport:
        """Export one page (and its descendants) at the output root."""
        await self._exporter.export_page(page_id)
        self._exporter.checkpoint()
        return self._exporter.report

    async def retry_failed(self) -> ExportReport:
        """Re-export the pages owning the blocks listed in the error log."""
        controller = RetryController(self._exporter, self._blocks, self._config.error_log_path)
        return await controller.retry_failed()

    # ------------------------------------------------------------------
    # Deduplication
    # ------------------------------------------------------------------

    def find_duplicates(self) -> list[DuplicatePair]:
        finder = DuplicateFinder(
            self._config.attachments_path,
            min_size_bytes=self._config.dedup_min_size_bytes,
        )
        return finder.find()

    def fix_duplicates(self, pairs: list[DuplicatePair]) -> DedupResult:
        fixer = DuplicateFixer(self._config.output_path, self._config.attachments_dirname)
        return fixer.apply(pairs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the API and download HTTP clients."""
        await self._transport.close()
        await self._materializer.close()

    async def __aenter__(self) -> AsyncNotionVaultClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
