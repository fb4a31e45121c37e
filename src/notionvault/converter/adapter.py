"""Content model adapter: Notion API objects to typed models.

The retrieval layer returns raw JSON dicts.  These functions map them to
the dataclasses in :mod:`notionvault.models` so the renderer, the
recovery heuristic and the exporter never index into API payloads
directly.  Unknown or missing fields fall back to the model defaults;
nothing here performs I/O.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from notionvault.models import (
    Annotations,
    Block,
    BlockType,
    Database,
    Page,
    ParentRef,
    ParentType,
    PropertyValue,
    RichTextRun,
    SearchItem,
)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a Notion ISO-8601 timestamp (``...Z`` suffix allowed)."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def rich_text_from_api(segments: list[dict] | None) -> list[RichTextRun]:
    """Map a rich_text array to :class:`RichTextRun` objects."""
    runs: list[RichTextRun] = []
    for seg in segments or []:
        ann = seg.get("annotations") or {}
        runs.append(
            RichTextRun(
                plain_text=seg.get("plain_text")
                or (seg.get("text") or {}).get("content", ""),
                annotations=Annotations(
                    bold=bool(ann.get("bold")),
                    italic=bool(ann.get("italic")),
                    strikethrough=bool(ann.get("strikethrough")),
                    code=bool(ann.get("code")),
                ),
                href=seg.get("href"),
            )
        )
    return runs


def plain_text(runs: list[RichTextRun]) -> str:
    """Concatenate the plain text of *runs*."""
    return "".join(run.plain_text for run in runs)


def parent_from_api(parent: dict | None) -> ParentRef | None:
    if not parent:
        return None
    ptype = ParentType.from_api(parent.get("type"))
    pid = parent.get(ptype.value) if ptype not in (ParentType.WORKSPACE, ParentType.UNKNOWN) else None
    return ParentRef(type=ptype, id=pid)


def _media_url(data: dict) -> str | None:
    return (data.get("file") or {}).get("url") or (data.get("external") or {}).get("url")


def block_from_api(obj: dict[str, Any]) -> Block:
    """Map a block object to a :class:`Block`.

    The kind-specific payload under ``obj[obj["type"]]`` is flattened into
    the dataclass fields that kind uses.
    """
    raw_type = obj.get("type", "")
    btype = BlockType.from_api(raw_type)
    data: dict = obj.get(raw_type) or {}

    block = Block(
        id=obj.get("id", ""),
        type=btype,
        raw_type=raw_type,
        has_children=bool(obj.get("has_children")),
        last_edited_time=parse_timestamp(obj.get("last_edited_time")),
        rich_text=rich_text_from_api(data.get("rich_text")),
        parent=parent_from_api(obj.get("parent")),
    )

    if btype is BlockType.TO_DO:
        block.checked = bool(data.get("checked"))
    elif btype is BlockType.CODE:
        block.language = data.get("language") or ""
    elif btype is BlockType.CALLOUT:
        block.icon = (data.get("icon") or {}).get("emoji")
    elif btype in (BlockType.IMAGE, BlockType.FILE, BlockType.PDF, BlockType.VIDEO):
        block.media_url = _media_url(data)
        block.caption = rich_text_from_api(data.get("caption"))
        block.name = data.get("name")
    elif btype in (BlockType.EMBED, BlockType.BOOKMARK, BlockType.LINK_PREVIEW):
        block.url = data.get("url")
        block.caption = rich_text_from_api(data.get("caption"))
    elif btype in (BlockType.CHILD_PAGE, BlockType.CHILD_DATABASE):
        block.title = data.get("title")
    elif btype is BlockType.EQUATION:
        block.expression = data.get("expression") or ""
    elif btype is BlockType.TABLE_ROW:
        block.cells = [rich_text_from_api(cell) for cell in data.get("cells") or []]

    return block


def page_from_api(obj: dict[str, Any]) -> Page:
    """Map a page object to a :class:`Page`.

    The title comes from the single ``title``-typed property; it is kept
    in :attr:`Page.properties` too, and excluded at frontmatter time.
    """
    properties: dict[str, PropertyValue] = {}
    title = ""
    for name, prop in (obj.get("properties") or {}).items():
        ptype = prop.get("type", "")
        properties[name] = PropertyValue(type=ptype, raw=prop)
        if ptype == "title" and not title:
            title = plain_text(rich_text_from_api(prop.get("title")))

    return Page(
        id=obj.get("id", ""),
        title=title or "Untitled",
        url=obj.get("url"),
        created_time=parse_timestamp(obj.get("created_time")),
        last_edited_time=parse_timestamp(obj.get("last_edited_time")),
        created_by=(obj.get("created_by") or {}).get("id"),
        last_edited_by=(obj.get("last_edited_by") or {}).get("id"),
        properties=properties,
        parent=parent_from_api(obj.get("parent")),
    )


def database_from_api(obj: dict[str, Any]) -> Database:
    """Map a database object to a :class:`Database`."""
    title = plain_text(rich_text_from_api(obj.get("title")))
    return Database(
        id=obj.get("id", ""),
        title=title or "Untitled Database",
        url=obj.get("url"),
        created_time=parse_timestamp(obj.get("created_time")),
        last_edited_time=parse_timestamp(obj.get("last_edited_time")),
        property_names=list((obj.get("properties") or {}).keys()),
    )


def search_item_from_api(obj: dict[str, Any]) -> SearchItem:
    return SearchItem(
        id=obj.get("id", ""),
        object=obj.get("object", ""),
        parent=parent_from_api(obj.get("parent")) or ParentRef(type=ParentType.UNKNOWN),
    )
