"""Resume/Retry Controller: replay only the pages that failed last run.

The previous run's error log doubles as a work queue.  Every block
failure line carries ``Process block <id>``; each such block is mapped
to the page that owns it by walking its parent chain, and exactly those
pages are exported again.  Afterwards the log is replaced by the retry
pass's own failures, or deleted when there are none.
"""

from __future__ import annotations

from pathlib import Path

from notionvault.converter import parent_from_api
from notionvault.errors import NotionVaultError, NotionVaultResolutionError
from notionvault.models import ExportReport, ParentType
from notionvault.notion_api import AsyncBlockAPI
from notionvault.observability import get_logger, kv

from .error_log import failed_block_ids
from .tree import TreeExporter

log = get_logger("notionvault.retry")

MAX_PARENT_DEPTH = 64
"""Longest block → block parent chain followed before giving up."""


class RetryController:
    """Re-export the owning pages of failed blocks.

    Parameters
    ----------
    exporter:
        The run's :class:`TreeExporter`; its visited set and report are
        reset for the retry pass.
    blocks:
        Block API used to walk parent chains.
    error_log_path:
        Log written by the previous run.
    """

    def __init__(
        self,
        exporter: TreeExporter,
        blocks: AsyncBlockAPI,
        error_log_path: str | Path,
    ) -> None:
        self._exporter = exporter
        self._blocks = blocks
        self._error_log_path = Path(error_log_path)

    async def resolve_page_id(self, block_id: str) -> str:
        """Return the id of the page that owns *block_id*.

        * ``page_id`` parent: that page.
        * ``block_id`` parent: keep walking.
        * ``database_id`` parent: the current object is a database row,
          i.e. itself a page.

        Raises
        ------
        NotionVaultResolutionError
            For any other parent kind, a chain deeper than
            :data:`MAX_PARENT_DEPTH`, or an API failure along the way.
        """
        current = block_id
        for depth in range(MAX_PARENT_DEPTH + 1):
            try:
                obj = await self._blocks.retrieve(current)
            except NotionVaultError as exc:
                raise NotionVaultResolutionError(
                    message=f"Could not retrieve {current}: {exc.message}",
                    context={"block_id": block_id, "depth": depth},
                    cause=exc,
                ) from exc

            parent = parent_from_api(obj.get("parent"))
            if parent is not None and parent.id:
                if parent.type is ParentType.PAGE:
                    return parent.id
                if parent.type is ParentType.DATABASE:
                    return current
                if parent.type is ParentType.BLOCK:
                    current = parent.id
                    continue

            raise NotionVaultResolutionError(
                message=f"Unresolvable parent for {current}",
                context={
                    "block_id": block_id,
                    "parent_type": parent.type.value if parent else None,
                    "depth": depth,
                },
            )

        raise NotionVaultResolutionError(
            message=f"Parent chain deeper than {MAX_PARENT_DEPTH}",
            context={"block_id": block_id, "depth": MAX_PARENT_DEPTH},
        )

    async def list_failed_page_ids(self, error_log_path: str | Path | None = None) -> list[str]:
        """Page ids owning the blocks named in the error log.

        Order follows the first appearance in the log; duplicates are
        removed.  Blocks that cannot be resolved are logged, recorded as
        ``Resolve parent of block <id>`` and dropped.
        """
        path = Path(error_log_path) if error_log_path is not None else self._error_log_path
        if not path.exists():
            return []

        page_ids: dict[str, None] = {}
        for block_id in failed_block_ids(path.read_text(encoding="utf-8")):
            try:
                page_id = await self.resolve_page_id(block_id)
            except NotionVaultResolutionError as exc:
                self._exporter.report.record_error(f"Resolve parent of block {block_id}", exc)
                log.warning(
                    "Dropping unresolvable block from retry set",
                    extra=kv(op="resolve_parent", block_id=block_id, error=exc.message),
                )
                continue
            page_ids.setdefault(page_id, None)
        return list(page_ids)

    async def retry_failed(self) -> ExportReport:
        """Run the retry pass and checkpoint; returns the pass's report."""
        report = self._exporter.reset()
        page_ids = await self.list_failed_page_ids()
        log.info(
            "Retrying failed pages",
            extra=kv(op="retry_failed", pages=len(page_ids), error_log=str(self._error_log_path)),
        )
        try:
            for page_id in page_ids:
                await self._exporter.export_page(page_id)
        finally:
            self._exporter.checkpoint()
        return report
