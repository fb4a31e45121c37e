"""Tests for content-edit-time recovery."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from notionvault.errors import NotionVaultNetworkError
from notionvault.exporter.recovery import recover_true_edit_time
from notionvault.models import Block, BlockType

CUTOFF = datetime(2024, 5, 1, tzinfo=timezone.utc)


def ts(month: int, day: int = 1) -> datetime:
    return datetime(2024, month, day, tzinfo=timezone.utc)


def blk(block_id, edited=None, btype=BlockType.PARAGRAPH, has_children=False):
    return Block(id=block_id, type=btype, has_children=has_children, last_edited_time=edited)


def fetcher(tree: dict[str, list[Block]], fail: set[str] = frozenset()):
    calls: list[str] = []

    async def fetch(block_id):
        calls.append(block_id)
        if block_id in fail:
            raise NotionVaultNetworkError(message="boom", context={})
        return tree.get(block_id, [])

    fetch.calls = calls
    return fetch


class TestRecoverTrueEditTime:
    @pytest.mark.asyncio
    async def test_newest_before_cutoff(self):
        blocks = [blk("a", ts(3)), blk("b", ts(4)), blk("c", ts(6))]
        assert await recover_true_edit_time(blocks, CUTOFF, fetcher({})) == ts(4)

    @pytest.mark.asyncio
    async def test_cutoff_is_exclusive(self):
        blocks = [blk("a", CUTOFF), blk("b", ts(2))]
        assert await recover_true_edit_time(blocks, CUTOFF, fetcher({})) == ts(2)

    @pytest.mark.asyncio
    async def test_none_when_everything_after_cutoff(self):
        blocks = [blk("a", ts(7)), blk("b", None)]
        assert await recover_true_edit_time(blocks, CUTOFF, fetcher({})) is None

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await recover_true_edit_time([], CUTOFF, fetcher({})) is None

    @pytest.mark.asyncio
    async def test_descends_into_nested_children(self):
        blocks = [blk("a", ts(1), has_children=True)]
        tree = {"a": [blk("b", ts(2), has_children=True)], "b": [blk("c", ts(4, 30))]}
        assert await recover_true_edit_time(blocks, CUTOFF, fetcher(tree)) == ts(4, 30)

    @pytest.mark.asyncio
    async def test_does_not_cross_child_pages(self):
        child_page = blk("cp", ts(1), btype=BlockType.CHILD_PAGE, has_children=True)
        child_db = blk("cd", ts(1), btype=BlockType.CHILD_DATABASE, has_children=True)
        tree = {"cp": [blk("x", ts(4))], "cd": [blk("y", ts(4))]}
        fetch = fetcher(tree)
        assert await recover_true_edit_time([child_page, child_db], CUTOFF, fetch) == ts(1)
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_failed_subtree_is_skipped(self):
        blocks = [blk("bad", ts(1), has_children=True), blk("ok", ts(2), has_children=True)]
        tree = {"bad": [blk("hidden", ts(4))], "ok": [blk("seen", ts(3))]}
        assert await recover_true_edit_time(blocks, CUTOFF, fetcher(tree, fail={"bad"})) == ts(3)

    @pytest.mark.asyncio
    async def test_depth_first_document_order(self):
        blocks = [blk("a", has_children=True), blk("b", has_children=True)]
        tree = {"a": [blk("a1", has_children=True)], "a1": [], "b": []}
        fetch = fetcher(tree)
        await recover_true_edit_time(blocks, CUTOFF, fetch)
        assert fetch.calls == ["a", "a1", "b"]
