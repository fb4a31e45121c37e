"""Tree Exporter: mirror the workspace hierarchy as markdown files.

Placement rules (paths relative to the output root):

* a page with no child-page / child-database reference is written as
  ``<parent>/<title>.md``;
* a page with at least one such reference becomes a folder,
  ``<parent>/<title>/<title>.md``, and its children are exported inside;
* a database always becomes a folder holding ``_<title>.base.md`` (which
  sorts before the member pages) and one file or folder per member page.

Every page and database id is exported at most once per run; the visited
check-and-set happens before any I/O, so an id reachable through several
paths (a database row that search also returns) lands where it was
first reached.

Failures are scoped: a block failure is recorded by the renderer and the
page is still written; a page or database failure is recorded as
``Import page <id>`` / ``Import database <id>`` and its siblings carry
on.  Nothing is persisted mid-run except the exported files themselves;
the error log and the attachment index are written by
:meth:`TreeExporter.checkpoint`.
"""

from __future__ import annotations

import time
from pathlib import Path

from notionvault.attachments import AttachmentMaterializer, sanitize_file_name, set_file_timestamps
from notionvault.config import NotionVaultConfig
from notionvault.converter import (
    MarkdownRenderer,
    RenderContext,
    UserNameResolver,
    block_from_api,
    build_database_frontmatter,
    build_page_frontmatter,
    database_from_api,
    page_from_api,
    render_frontmatter,
    search_item_from_api,
)
from notionvault.models import Block, BlockType, ExportReport, FileTimes, SearchItem
from notionvault.notion_api import (
    AsyncBlockAPI,
    AsyncDatabaseAPI,
    AsyncPageAPI,
    AsyncSearchAPI,
    AsyncUserAPI,
)
from notionvault.observability import NoopMetricsHook, get_logger, kv
from notionvault.utils.fs import write_text_atomic

from .error_log import write_error_log
from .recovery import recover_true_edit_time

log = get_logger("notionvault.exporter")

DATABASE_BODY = "This is a Notion database."


class _ChildrenCache:
    """Per-page memo of block children.

    Recovery and rendering walk the same subtree; each block's children
    are fetched from the API once per page export.
    """

    def __init__(self, blocks: AsyncBlockAPI) -> None:
        self._blocks = blocks
        self._cache: dict[str, list[Block]] = {}

    async def __call__(self, block_id: str) -> list[Block]:
        cached = self._cache.get(block_id)
        if cached is None:
            raw = await self._blocks.get_children(block_id)
            cached = [block_from_api(obj) for obj in raw]
            self._cache[block_id] = cached
        return cached


class TreeExporter:
    """Export pages and databases into the output tree.

    Parameters
    ----------
    config:
        Output locations, name-length cap and ``correction_date``.
    blocks, pages, databases, search, users:
        Retrieval-layer API wrappers.
    materializer:
        Attachment materializer shared by every page of the run.
    report:
        Accumulator for the run; a fresh one is created when omitted.
    """

    def __init__(
        self,
        config: NotionVaultConfig,
        blocks: AsyncBlockAPI,
        pages: AsyncPageAPI,
        databases: AsyncDatabaseAPI,
        search: AsyncSearchAPI,
        users: AsyncUserAPI,
        materializer: AttachmentMaterializer,
        report: ExportReport | None = None,
    ) -> None:
        self._config = config
        self._blocks = blocks
        self._pages = pages
        self._databases = databases
        self._search = search
        self._materializer = materializer
        self._renderer = MarkdownRenderer(materializer)
        self._users = UserNameResolver(users)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._root = config.output_path
        self._visited: set[str] = set()
        self.report = report if report is not None else ExportReport()

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    def reset(self) -> ExportReport:
        """Forget visited ids and start a new report (used by retry mode)."""
        self._visited.clear()
        self.report = ExportReport()
        return self.report

    # ------------------------------------------------------------------
    # Workspace
    # ------------------------------------------------------------------

    async def export_workspace(self) -> ExportReport:
        """Export everything the integration can see, then checkpoint.

        Pass 1 exports the items whose parent is the workspace root, so
        the top level of the tree matches the sidebar.  Pass 2 repeats the
        search and exports anything still unvisited at the output root
        (items whose parent chain the integration cannot see).

        A failing search is fatal and propagates; the checkpoint still
        runs so the error log reflects what happened before it.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        try:
            log.info("Export pass 1: workspace roots", extra=kv(op="export_workspace"))
            async for obj in self._search.iter_all():
                item = search_item_from_api(obj)
                if item.is_root:
                    await self._export_item(item, Path())

            log.info("Export pass 2: unvisited items", extra=kv(op="export_workspace"))
            async for obj in self._search.iter_all():
                item = search_item_from_api(obj)
                if item.id not in self._visited:
                    await self._export_item(item, Path())
        finally:
            self.checkpoint()
        return self.report

    async def _export_item(self, item: SearchItem, parent: Path) -> None:
        if item.object == "page":
            await self.export_page(item.id, parent)
        elif item.object == "database":
            await self.export_database(item.id, parent)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def export_page(self, page_id: str, parent: Path = Path()) -> None:
        """Export one page (and its child pages/databases) under *parent*.

        *parent* is relative to the output root.
        """
        if page_id in self._visited:
            return
        self._visited.add(page_id)

        t0 = time.monotonic()
        try:
            folder, child_refs = await self._write_page(page_id, parent)
        except Exception as exc:
            self._record_failure(f"Import page {page_id}", exc, page_id=page_id)
            return
        self._metrics.timing(
            "notionvault.page_export_duration_ms", (time.monotonic() - t0) * 1000
        )

        for ref in child_refs:
            if ref.type is BlockType.CHILD_DATABASE:
                await self.export_database(ref.id, folder)
            else:
                await self.export_page(ref.id, folder)

    async def _write_page(self, page_id: str, parent: Path) -> tuple[Path, list[Block]]:
        page = page_from_api(await self._pages.retrieve(page_id))
        fetch_children = _ChildrenCache(self._blocks)
        blocks = await fetch_children(page_id)

        content_updated = None
        cutoff = self._config.correction_date
        if cutoff is not None and page.last_edited_time is not None and page.last_edited_time >= cutoff:
            content_updated = await recover_true_edit_time(blocks, cutoff, fetch_children)
            log.debug(
                "Recovered content edit time",
                extra=kv(page_id=page_id, content_updated=str(content_updated)),
            )

        times = FileTimes(
            created=page.created_time,
            modified=content_updated or page.last_edited_time,
        )
        frontmatter = await build_page_frontmatter(page, self._users, content_updated)
        ctx = RenderContext(
            page_id=page_id,
            fetch_children=fetch_children,
            report=self.report,
            timestamps=times,
        )
        body = await self._renderer.render(blocks, ctx)

        safe_name = self._safe_name(page.title)
        folder = parent / safe_name if ctx.child_refs else parent
        path = write_text_atomic(
            self._root / folder / f"{safe_name}.md",
            f"{render_frontmatter(frontmatter)}\n\n{body}",
        )
        self._stamp(path, times)

        self.report.stats.pages += 1
        self._metrics.increment("notionvault.pages_exported_total")
        log.info(
            "Exported page",
            extra=kv(op="export_page", page_id=page_id, path=str(path.relative_to(self._root))),
        )
        return folder, ctx.child_refs

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    async def export_database(self, database_id: str, parent: Path = Path()) -> None:
        """Export a database folder and all of its member pages."""
        if database_id in self._visited:
            return
        self._visited.add(database_id)

        try:
            database = database_from_api(await self._databases.retrieve(database_id))
            if not database.is_exportable:
                log.info(
                    "Skipping linked or empty database",
                    extra=kv(op="export_database", database_id=database_id),
                )
                return

            safe_name = self._safe_name(database.title)
            folder = parent / safe_name
            frontmatter = build_database_frontmatter(database, database.title)
            path = write_text_atomic(
                self._root / folder / f"_{safe_name}.base.md",
                f"{render_frontmatter(frontmatter)}\n\n{DATABASE_BODY}",
            )
            self._stamp(path, FileTimes(database.created_time, database.last_edited_time))
            self.report.stats.databases += 1
            self._metrics.increment("notionvault.databases_exported_total")
            log.info(
                "Exported database",
                extra=kv(op="export_database", database_id=database_id, path=str(folder)),
            )

            rows = await self._databases.query(database_id)
        except Exception as exc:
            self._record_failure(f"Import database {database_id}", exc, database_id=database_id)
            return

        for row in rows:
            await self.export_page(row["id"], folder)

    # ------------------------------------------------------------------
    # Checkpoint
    # ------------------------------------------------------------------

    def checkpoint(self) -> Path | None:
        """Persist the attachment index and the error log.

        Returns the error log path, or ``None`` when the run was clean (a
        stale log from an earlier run is removed).
        """
        self._materializer.index.save()
        return write_error_log(self._config.error_log_path, self.report.errors)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _safe_name(self, title: str) -> str:
        return sanitize_file_name(title, self._config.max_file_name_length)

    def _stamp(self, path: Path, times: FileTimes) -> None:
        try:
            set_file_timestamps(path, times.created, times.modified)
        except OSError as exc:
            log.warning(
                "Could not set file timestamps",
                extra=kv(path=str(path), error=str(exc)),
            )

    def _record_failure(self, context: str, exc: Exception, **fields: str) -> None:
        self.report.record_error(context, exc)
        self._metrics.increment("notionvault.export_errors_total")
        log.error(context, extra=kv(error=str(exc), error_type=type(exc).__name__, **fields))
