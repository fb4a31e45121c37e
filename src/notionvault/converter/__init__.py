"""Conversion of Notion API objects into typed models and markdown."""

from .adapter import (
    block_from_api,
    database_from_api,
    page_from_api,
    parent_from_api,
    parse_timestamp,
    plain_text,
    rich_text_from_api,
    search_item_from_api,
)
from .frontmatter import (
    UserNameResolver,
    build_database_frontmatter,
    build_page_frontmatter,
    extract_properties,
    format_local_datetime,
    render_frontmatter,
)
from .inline_renderer import render_rich_text, render_run
from .markdown import MarkdownRenderer, RenderContext, block_error_context

__all__ = [
    "MarkdownRenderer",
    "RenderContext",
    "UserNameResolver",
    "block_error_context",
    "block_from_api",
    "build_database_frontmatter",
    "build_page_frontmatter",
    "database_from_api",
    "extract_properties",
    "format_local_datetime",
    "page_from_api",
    "parent_from_api",
    "parse_timestamp",
    "plain_text",
    "render_frontmatter",
    "render_rich_text",
    "render_run",
    "rich_text_from_api",
    "search_item_from_api",
]
