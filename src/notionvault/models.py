"""Data models for notionvault.

Two families live here:

* the **content model**: typed views of Notion blocks, pages, databases
  and search results produced by :mod:`notionvault.converter.adapter`;
* the **run bookkeeping** types: statistics, error records, the owned
  :class:`ExportReport` accumulator, attachment and duplicate results.

All types are plain dataclasses with no behaviour beyond small helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Block kinds the exporter understands.

    Anything else maps to :attr:`UNRECOGNIZED` and renders as nothing.
    """

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CALLOUT = "callout"
    CODE = "code"
    DIVIDER = "divider"
    IMAGE = "image"
    FILE = "file"
    PDF = "pdf"
    VIDEO = "video"
    EMBED = "embed"
    BOOKMARK = "bookmark"
    TABLE = "table"
    TABLE_ROW = "table_row"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    SYNCED_BLOCK = "synced_block"
    LINK_PREVIEW = "link_preview"
    EQUATION = "equation"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_api(cls, value: str | None) -> BlockType:
        try:
            return cls(value)
        except ValueError:
            return cls.UNRECOGNIZED


class ParentType(str, Enum):
    """The ``parent.type`` tags returned by the Notion API."""

    WORKSPACE = "workspace"
    PAGE = "page_id"
    DATABASE = "database_id"
    BLOCK = "block_id"
    UNKNOWN = "unknown"

    @classmethod
    def from_api(cls, value: str | None) -> ParentType:
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


# Block kinds whose content belongs to another page.
CHILD_REFERENCE_TYPES: frozenset[BlockType] = frozenset({
    BlockType.CHILD_PAGE,
    BlockType.CHILD_DATABASE,
})


# ---------------------------------------------------------------------------
# Content model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Annotations:
    """Inline formatting flags of a rich-text run."""

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    code: bool = False


@dataclass(frozen=True)
class RichTextRun:
    """One run of a Notion rich-text array.

    Attributes
    ----------
    plain_text:
        The unformatted text of the run.
    annotations:
        Formatting applied to the whole run.
    href:
        Hyperlink target, if the run is a link.
    """

    plain_text: str
    annotations: Annotations = field(default_factory=Annotations)
    href: str | None = None


@dataclass(frozen=True)
class ParentRef:
    """Reference to the parent of a block, page or database."""

    type: ParentType
    id: str | None = None


@dataclass
class Block:
    """A Notion block with its kind-specific payload flattened.

    Only the payload fields relevant to :attr:`type` are populated; the
    rest keep their defaults.

    Attributes
    ----------
    id:
        Block UUID.
    type:
        Parsed block kind.
    raw_type:
        The API ``type`` string, kept for diagnostics (it differs from
        ``type.value`` for unrecognized kinds).
    has_children:
        Whether the block has child blocks to fetch.
    last_edited_time:
        Block-level edit timestamp, used by content-edit-time recovery.
    rich_text:
        Main text of text-bearing kinds.
    checked:
        To-do state.
    language:
        Code block language tag.
    icon:
        Callout emoji.
    url:
        Target of embed, bookmark and link-preview blocks.
    media_url:
        Source URL of image, file, pdf and video blocks.
    caption:
        Caption runs of media and bookmark blocks.
    name:
        File name of file and pdf blocks.
    title:
        Title of child-page and child-database blocks.
    expression:
        LaTeX source of equation blocks.
    cells:
        Table-row cells, each a rich-text array.
    parent:
        Parent reference, when the API returned one.
    """

    id: str
    type: BlockType
    raw_type: str = ""
    has_children: bool = False
    last_edited_time: datetime | None = None
    rich_text: list[RichTextRun] = field(default_factory=list)
    checked: bool = False
    language: str = ""
    icon: str | None = None
    url: str | None = None
    media_url: str | None = None
    caption: list[RichTextRun] = field(default_factory=list)
    name: str | None = None
    title: str | None = None
    expression: str = ""
    cells: list[list[RichTextRun]] = field(default_factory=list)
    parent: ParentRef | None = None

    @property
    def is_child_reference(self) -> bool:
        return self.type in CHILD_REFERENCE_TYPES


@dataclass(frozen=True)
class PropertyValue:
    """A typed page property value.

    ``raw`` is the full property object; extraction into a scalar or list
    happens in :mod:`notionvault.converter.frontmatter`.
    """

    type: str
    raw: dict = field(default_factory=dict)


@dataclass
class Page:
    """A Notion page as consumed by the exporter."""

    id: str
    title: str = "Untitled"
    url: str | None = None
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    created_by: str | None = None
    last_edited_by: str | None = None
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    parent: ParentRef | None = None


@dataclass
class Database:
    """A Notion database; only its property *names* are kept."""

    id: str
    title: str = "Untitled Database"
    url: str | None = None
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    property_names: list[str] = field(default_factory=list)

    @property
    def is_exportable(self) -> bool:
        """Linked/empty databases expose no properties and are skipped."""
        return bool(self.property_names)


@dataclass(frozen=True)
class SearchItem:
    """One result of the workspace-wide search."""

    id: str
    object: str
    parent: ParentRef

    @property
    def is_root(self) -> bool:
        return self.parent.type is ParentType.WORKSPACE


# ---------------------------------------------------------------------------
# Run bookkeeping
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileTimes:
    """Creation / modification times stamped on written files."""

    created: datetime | None = None
    modified: datetime | None = None


@dataclass
class ExportStats:
    """Counters reported in the end-of-run summary."""

    pages: int = 0
    databases: int = 0
    attachments: int = 0
    errors: int = 0


@dataclass(frozen=True)
class ErrorRecord:
    """One line of the error log.

    Attributes
    ----------
    timestamp:
        When the failure was recorded (UTC).
    context:
        Where the failure happened.  Block failures embed the literal
        ``Process block <id>`` marker that retry mode parses.
    message:
        The underlying failure message.
    """

    timestamp: datetime
    context: str
    message: str


@dataclass
class ExportReport:
    """Accumulator owned by one run and threaded through the exporter.

    It replaces process-wide counters: each run (full export or retry
    pass) owns exactly one report.
    """

    stats: ExportStats = field(default_factory=ExportStats)
    errors: list[ErrorRecord] = field(default_factory=list)

    def record_error(self, context: str, error: BaseException | str) -> ErrorRecord:
        """Append an :class:`ErrorRecord` and bump the error counter."""
        if isinstance(error, BaseException):
            message = getattr(error, "message", None) or str(error) or type(error).__name__
        else:
            message = error
        record = ErrorRecord(
            timestamp=datetime.now(timezone.utc),
            context=context,
            message=message,
        )
        self.errors.append(record)
        self.stats.errors += 1
        return record


@dataclass(frozen=True)
class MaterializedAttachment:
    """Result of :meth:`AttachmentMaterializer.materialize`.

    Attributes
    ----------
    path:
        Absolute-or-relative path of the local file.
    file_name:
        Base name of the file inside the attachments directory.
    downloaded:
        ``False`` when an existing file was reused.
    """

    path: Path
    file_name: str
    downloaded: bool


@dataclass(frozen=True)
class DuplicatePair:
    """A duplicate attachment and the copy that replaces it."""

    loser: Path
    keeper: Path


@dataclass
class DedupResult:
    """Summary of :meth:`DuplicateFixer.apply`."""

    files_updated: int = 0
    references_updated: int = 0
    deleted: int = 0
    bytes_freed: int = 0
