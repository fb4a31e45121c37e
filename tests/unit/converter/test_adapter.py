"""Tests for the API object → model adapter."""

from datetime import datetime, timezone

from notionvault.converter.adapter import (
    block_from_api,
    database_from_api,
    page_from_api,
    parent_from_api,
    parse_timestamp,
    plain_text,
    rich_text_from_api,
    search_item_from_api,
)
from notionvault.models import BlockType, ParentType


def text_seg(content, **annotations):
    return {
        "type": "text",
        "text": {"content": content},
        "plain_text": content,
        "annotations": annotations,
        "href": None,
    }


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2024-03-01T10:20:00.000Z") == datetime(
            2024, 3, 1, 10, 20, tzinfo=timezone.utc
        )

    def test_offset(self):
        ts = parse_timestamp("2024-03-01T10:20:00+02:00")
        assert ts.utcoffset().total_seconds() == 7200

    def test_none_and_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_garbage(self):
        assert parse_timestamp("yesterday") is None


class TestRichText:
    def test_maps_annotations_and_href(self):
        seg = text_seg("hi", bold=True, code=True)
        seg["href"] = "https://e.com"
        (run,) = rich_text_from_api([seg])
        assert run.plain_text == "hi"
        assert run.annotations.bold and run.annotations.code
        assert not run.annotations.italic
        assert run.href == "https://e.com"

    def test_falls_back_to_text_content(self):
        (run,) = rich_text_from_api([{"type": "text", "text": {"content": "raw"}}])
        assert run.plain_text == "raw"

    def test_plain_text_concatenation(self):
        assert plain_text(rich_text_from_api([text_seg("a"), text_seg("b")])) == "ab"

    def test_none(self):
        assert rich_text_from_api(None) == []


class TestParentFromApi:
    def test_page_parent(self):
        ref = parent_from_api({"type": "page_id", "page_id": "p1"})
        assert ref.type is ParentType.PAGE and ref.id == "p1"

    def test_database_parent(self):
        ref = parent_from_api({"type": "database_id", "database_id": "d1"})
        assert ref.type is ParentType.DATABASE and ref.id == "d1"

    def test_block_parent(self):
        ref = parent_from_api({"type": "block_id", "block_id": "b1"})
        assert ref.type is ParentType.BLOCK and ref.id == "b1"

    def test_workspace_has_no_id(self):
        ref = parent_from_api({"type": "workspace", "workspace": True})
        assert ref.type is ParentType.WORKSPACE and ref.id is None

    def test_unknown_type(self):
        assert parent_from_api({"type": "team_id"}).type is ParentType.UNKNOWN

    def test_missing(self):
        assert parent_from_api(None) is None


class TestBlockFromApi:
    def test_paragraph(self):
        block = block_from_api({
            "id": "b1",
            "type": "paragraph",
            "has_children": True,
            "last_edited_time": "2024-01-02T03:04:00.000Z",
            "paragraph": {"rich_text": [text_seg("hello")]},
        })
        assert block.type is BlockType.PARAGRAPH
        assert block.has_children
        assert plain_text(block.rich_text) == "hello"
        assert block.last_edited_time.year == 2024

    def test_unrecognized_keeps_raw_type(self):
        block = block_from_api({"id": "b2", "type": "ai_block", "ai_block": {}})
        assert block.type is BlockType.UNRECOGNIZED
        assert block.raw_type == "ai_block"

    def test_to_do_checked(self):
        block = block_from_api({"id": "t", "type": "to_do", "to_do": {"rich_text": [], "checked": True}})
        assert block.checked is True

    def test_code_language(self):
        block = block_from_api({"id": "c", "type": "code", "code": {"rich_text": [], "language": "python"}})
        assert block.language == "python"

    def test_callout_emoji(self):
        block = block_from_api({
            "id": "c", "type": "callout",
            "callout": {"rich_text": [], "icon": {"type": "emoji", "emoji": "⚠️"}},
        })
        assert block.icon == "⚠️"

    def test_callout_non_emoji_icon(self):
        block = block_from_api({
            "id": "c", "type": "callout",
            "callout": {"rich_text": [], "icon": {"type": "external", "external": {"url": "u"}}},
        })
        assert block.icon is None

    def test_hosted_image(self):
        block = block_from_api({
            "id": "i", "type": "image",
            "image": {"type": "file", "file": {"url": "https://s3/x.png"}, "caption": [text_seg("cap")]},
        })
        assert block.media_url == "https://s3/x.png"
        assert plain_text(block.caption) == "cap"

    def test_external_file_with_name(self):
        block = block_from_api({
            "id": "f", "type": "file",
            "file": {"type": "external", "external": {"url": "https://e.com/a.pdf"}, "name": "a.pdf"},
        })
        assert block.media_url == "https://e.com/a.pdf"
        assert block.name == "a.pdf"

    def test_bookmark(self):
        block = block_from_api({"id": "k", "type": "bookmark", "bookmark": {"url": "https://e.com"}})
        assert block.url == "https://e.com"

    def test_child_page_title(self):
        block = block_from_api({"id": "cp", "type": "child_page", "child_page": {"title": "Sub"}})
        assert block.title == "Sub"
        assert block.is_child_reference

    def test_equation(self):
        block = block_from_api({"id": "e", "type": "equation", "equation": {"expression": "E=mc^2"}})
        assert block.expression == "E=mc^2"

    def test_table_row_cells(self):
        block = block_from_api({
            "id": "r", "type": "table_row",
            "table_row": {"cells": [[text_seg("a")], [], [text_seg("c")]]},
        })
        assert [plain_text(c) for c in block.cells] == ["a", "", "c"]

    def test_parent(self):
        block = block_from_api({
            "id": "b", "type": "divider", "divider": {},
            "parent": {"type": "block_id", "block_id": "up"},
        })
        assert block.parent.type is ParentType.BLOCK
        assert block.parent.id == "up"


class TestPageFromApi:
    def test_full_page(self):
        page = page_from_api({
            "object": "page",
            "id": "p1",
            "url": "https://www.notion.so/p1",
            "created_time": "2024-01-01T00:00:00.000Z",
            "last_edited_time": "2024-02-01T00:00:00.000Z",
            "created_by": {"object": "user", "id": "u1"},
            "last_edited_by": {"object": "user", "id": "u2"},
            "parent": {"type": "workspace", "workspace": True},
            "properties": {
                "Name": {"type": "title", "title": [text_seg("My "), text_seg("Page")]},
                "Tags": {"type": "multi_select", "multi_select": [{"name": "x"}]},
            },
        })
        assert page.title == "My Page"
        assert page.created_by == "u1"
        assert page.last_edited_by == "u2"
        assert set(page.properties) == {"Name", "Tags"}
        assert page.properties["Tags"].type == "multi_select"
        assert page.parent.type is ParentType.WORKSPACE

    def test_untitled(self):
        page = page_from_api({"id": "p", "properties": {"Name": {"type": "title", "title": []}}})
        assert page.title == "Untitled"


class TestDatabaseFromApi:
    def test_database(self):
        db = database_from_api({
            "id": "d1",
            "title": [text_seg("Tasks")],
            "url": "https://www.notion.so/d1",
            "properties": {"Name": {}, "Status": {}},
        })
        assert db.title == "Tasks"
        assert db.property_names == ["Name", "Status"]
        assert db.is_exportable

    def test_linked_database_not_exportable(self):
        db = database_from_api({"id": "d2", "title": []})
        assert db.title == "Untitled Database"
        assert not db.is_exportable


class TestSearchItem:
    def test_root_item(self):
        item = search_item_from_api({"object": "page", "id": "p", "parent": {"type": "workspace", "workspace": True}})
        assert item.is_root

    def test_nested_item(self):
        item = search_item_from_api({"object": "database", "id": "d", "parent": {"type": "page_id", "page_id": "p"}})
        assert not item.is_root
        assert item.object == "database"

    def test_missing_parent_is_unknown(self):
        assert search_item_from_api({"object": "page", "id": "p"}).parent.type is ParentType.UNKNOWN
