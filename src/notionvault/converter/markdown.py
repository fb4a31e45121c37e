"""Notion block tree to Markdown renderer.

Converts a list of typed :class:`~notionvault.models.Block` objects into
the exporter's markdown dialect.  Children are fetched lazily through the
page's :class:`RenderContext`, attachments are materialized on the fly,
and child pages / child databases are *referenced* (``📄 [[title]]``)
rather than inlined: the renderer records them in
:attr:`RenderContext.child_refs` and the tree exporter writes them to
their own files.

Sibling fragments are joined with a blank line.  A block that fails is
recorded on the run's :class:`~notionvault.models.ExportReport` under
``Process block <id> (<type>)`` and contributes no output; its siblings
are still rendered.

Usage::

    renderer = MarkdownRenderer(materializer)
    ctx = RenderContext(page_id=page.id, fetch_children=fetch, report=report)
    md = await renderer.render(blocks, ctx)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from notionvault.errors import NotionVaultAttachmentError
from notionvault.models import Block, BlockType, ExportReport, FileTimes
from notionvault.observability import get_logger, kv

from .adapter import plain_text
from .inline_renderer import render_rich_text

log = get_logger("notionvault.renderer")

FetchChildren = Callable[[str], Awaitable[list[Block]]]

# Block types whose children are indented one level deeper.
_LIST_TYPES: frozenset[BlockType] = frozenset({
    BlockType.BULLETED_LIST_ITEM,
    BlockType.NUMBERED_LIST_ITEM,
    BlockType.TO_DO,
})

# Block types whose children are not rendered inline after the block.
_NO_INLINE_CHILDREN: frozenset[BlockType] = frozenset({
    BlockType.CHILD_PAGE,
    BlockType.CHILD_DATABASE,
    BlockType.TABLE,
})

DEFAULT_CALLOUT_ICON = "💡"


def block_error_context(block: Block, detail: str | None = None) -> str:
    """The error-log context for a failure inside *block*.

    The ``Process block <id>`` prefix is what retry mode parses.
    """
    return f"Process block {block.id} ({detail or block.raw_type or block.type.value})"


@dataclass
class RenderContext:
    """Per-page state threaded through one :meth:`MarkdownRenderer.render`.

    Attributes
    ----------
    page_id:
        The page being rendered.
    fetch_children:
        Coroutine returning the child blocks of a block id.  The tree
        exporter passes a per-page memoised fetcher shared with
        edit-time recovery.
    report:
        The run's accumulator; block failures are recorded here.
    timestamps:
        File times stamped on the page's attachments.
    child_refs:
        Child-page and child-database blocks found while rendering, in
        document order, at any depth.
    """

    page_id: str
    fetch_children: FetchChildren
    report: ExportReport
    timestamps: FileTimes | None = None
    child_refs: list[Block] = field(default_factory=list)


class MarkdownRenderer:
    """Render typed Notion blocks to markdown.

    Parameters
    ----------
    materializer:
        An :class:`~notionvault.attachments.AttachmentMaterializer` (or any
        object with the same ``materialize`` coroutine and ``directory``
        attribute) used for image, file and pdf blocks.
    """

    def __init__(self, materializer) -> None:
        self._materializer = materializer
        self._link_prefix = materializer.directory.name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def render(self, blocks: list[Block], ctx: RenderContext, indent: str = "") -> str:
        """Render *blocks* (siblings, in order) to a markdown string.

        Parameters
        ----------
        blocks:
            Sibling blocks.
        ctx:
            The page's render context.
        indent:
            Prefix applied to list items; nested list children get two
            more spaces.
        """
        parts: list[str] = []
        for block in blocks:
            try:
                parts.extend(await self._render_block(block, ctx, indent))
            except Exception as exc:
                ctx.report.record_error(block_error_context(block), exc)
                log.warning(
                    "Block failed to render",
                    extra=kv(
                        op="render",
                        page_id=ctx.page_id,
                        block_id=block.id,
                        block_type=block.raw_type,
                        error=str(exc),
                    ),
                )
        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Internal: one block with its children
    # ------------------------------------------------------------------

    async def _render_block(self, block: Block, ctx: RenderContext, indent: str) -> list[str]:
        parts: list[str] = []

        renderer = _BLOCK_RENDERERS.get(block.type)
        line = await renderer(self, block, ctx, indent) if renderer is not None else ""
        if line:
            parts.append(line)

        if block.has_children and block.type not in _NO_INLINE_CHILDREN:
            children = await ctx.fetch_children(block.id)
            child_indent = indent + "  " if block.type in _LIST_TYPES else indent
            content = await self.render(children, ctx, child_indent)
            if content:
                parts.append(content)

        if block.type is BlockType.TOGGLE:
            parts.append("</details>")
        return parts

    # ------------------------------------------------------------------
    # Block type renderers
    # ------------------------------------------------------------------

    async def _render_paragraph(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return render_rich_text(block.rich_text)

    async def _render_heading_1(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"# {render_rich_text(block.rich_text)}"

    async def _render_heading_2(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"## {render_rich_text(block.rich_text)}"

    async def _render_heading_3(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"### {render_rich_text(block.rich_text)}"

    async def _render_bulleted_list_item(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"{indent}- {render_rich_text(block.rich_text)}"

    async def _render_numbered_list_item(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"{indent}1. {render_rich_text(block.rich_text)}"

    async def _render_to_do(self, block: Block, ctx: RenderContext, indent: str) -> str:
        checkbox = "[x]" if block.checked else "[ ]"
        return f"{indent}- {checkbox} {render_rich_text(block.rich_text)}"

    async def _render_toggle(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"{indent}<details><summary>{render_rich_text(block.rich_text)}</summary>\n"

    async def _render_quote(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"> {render_rich_text(block.rich_text)}"

    async def _render_callout(self, block: Block, ctx: RenderContext, indent: str) -> str:
        icon = block.icon or DEFAULT_CALLOUT_ICON
        return f"> {icon} {render_rich_text(block.rich_text)}"

    async def _render_code(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"```{block.language}\n{plain_text(block.rich_text)}\n```"

    async def _render_divider(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return "---"

    async def _render_image(self, block: Block, ctx: RenderContext, indent: str) -> str:
        url = block.media_url
        if not url:
            return ""
        caption = plain_text(block.caption) or "image"
        try:
            attachment = await self._materializer.materialize(
                url, caption, owner=block.id, timestamps=ctx.timestamps,
            )
        except NotionVaultAttachmentError as exc:
            self._attachment_failed(block, ctx, exc)
            return f"![image]({url})"
        ctx.report.stats.attachments += 1
        return f"![{caption}]({self._link_prefix}/{attachment.file_name})"

    async def _render_file(self, block: Block, ctx: RenderContext, indent: str) -> str:
        url = block.media_url
        if not url:
            return ""
        name = block.name or plain_text(block.caption) or "file"
        try:
            attachment = await self._materializer.materialize(
                url, name, owner=block.id, timestamps=ctx.timestamps,
            )
        except NotionVaultAttachmentError as exc:
            self._attachment_failed(block, ctx, exc)
            return f"[{name}]({url})"
        ctx.report.stats.attachments += 1
        return f"[{name}]({self._link_prefix}/{attachment.file_name})"

    async def _render_video(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"[Video]({block.media_url})" if block.media_url else ""

    async def _render_link(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"[{block.url}]({block.url})" if block.url else ""

    async def _render_table(self, block: Block, ctx: RenderContext, indent: str) -> str:
        if not block.has_children:
            return ""
        rows = await ctx.fetch_children(block.id)
        lines: list[str] = []
        for row in rows:
            if row.type is not BlockType.TABLE_ROW:
                continue
            cells = [render_rich_text(cell) for cell in row.cells]
            lines.append(f"| {' | '.join(cells)} |")
            # GFM needs a separator after the header row.
            if len(lines) == 1:
                lines.append(f"| {' | '.join('---' for _ in cells)} |")
        return "\n".join(lines)

    async def _render_child_page(self, block: Block, ctx: RenderContext, indent: str) -> str:
        ctx.child_refs.append(block)
        return f"📄 [[{block.title or 'Untitled'}]]"

    async def _render_child_database(self, block: Block, ctx: RenderContext, indent: str) -> str:
        ctx.child_refs.append(block)
        return f"🗃️ [[{block.title or 'Untitled Database'}]]"

    async def _render_equation(self, block: Block, ctx: RenderContext, indent: str) -> str:
        return f"$${block.expression}$$" if block.expression else ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _attachment_failed(
        self, block: Block, ctx: RenderContext, exc: NotionVaultAttachmentError
    ) -> None:
        ctx.report.record_error(block_error_context(block), exc)
        log.warning(
            "Attachment download failed; linking the remote URL",
            extra=kv(
                op="materialize",
                page_id=ctx.page_id,
                block_id=block.id,
                error=exc.message,
            ),
        )


# ------------------------------------------------------------------
# Block renderer dispatch table
# ------------------------------------------------------------------

_BlockRenderer = Callable[[MarkdownRenderer, Block, RenderContext, str], Awaitable[str]]

# column_list, column and synced_block have no own text; their children
# are rendered by _render_block.  Unrecognized kinds render nothing.
_BLOCK_RENDERERS: dict[BlockType, _BlockRenderer] = {
    BlockType.PARAGRAPH: MarkdownRenderer._render_paragraph,
    BlockType.HEADING_1: MarkdownRenderer._render_heading_1,
    BlockType.HEADING_2: MarkdownRenderer._render_heading_2,
    BlockType.HEADING_3: MarkdownRenderer._render_heading_3,
    BlockType.BULLETED_LIST_ITEM: MarkdownRenderer._render_bulleted_list_item,
    BlockType.NUMBERED_LIST_ITEM: MarkdownRenderer._render_numbered_list_item,
    BlockType.TO_DO: MarkdownRenderer._render_to_do,
    BlockType.TOGGLE: MarkdownRenderer._render_toggle,
    BlockType.QUOTE: MarkdownRenderer._render_quote,
    BlockType.CALLOUT: MarkdownRenderer._render_callout,
    BlockType.CODE: MarkdownRenderer._render_code,
    BlockType.DIVIDER: MarkdownRenderer._render_divider,
    BlockType.IMAGE: MarkdownRenderer._render_image,
    BlockType.FILE: MarkdownRenderer._render_file,
    BlockType.PDF: MarkdownRenderer._render_file,
    BlockType.VIDEO: MarkdownRenderer._render_video,
    BlockType.EMBED: MarkdownRenderer._render_link,
    BlockType.BOOKMARK: MarkdownRenderer._render_link,
    BlockType.LINK_PREVIEW: MarkdownRenderer._render_link,
    BlockType.TABLE: MarkdownRenderer._render_table,
    BlockType.CHILD_PAGE: MarkdownRenderer._render_child_page,
    BlockType.CHILD_DATABASE: MarkdownRenderer._render_child_database,
    BlockType.EQUATION: MarkdownRenderer._render_equation,
}
