"""Tests for RetryController: parent-chain resolution and the retry pass."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from notionvault.errors import NotionVaultNotFoundError, NotionVaultResolutionError
from notionvault.exporter.retry import MAX_PARENT_DEPTH, RetryController
from notionvault.models import ExportReport


def obj(parent_type: str | None, parent_id: str | None = None) -> dict:
    if parent_type is None:
        return {"object": "block"}
    parent = {"type": parent_type}
    if parent_id is not None:
        parent[parent_type] = parent_id
    return {"object": "block", "parent": parent}


def blocks_api(chain: dict[str, dict]):
    async def retrieve(block_id):
        if block_id not in chain:
            raise NotionVaultNotFoundError(message=f"no {block_id}", context={})
        return chain[block_id]

    api = MagicMock()
    api.retrieve = AsyncMock(side_effect=retrieve)
    return api


def make_exporter():
    exporter = MagicMock()
    exporter.report = ExportReport()

    def reset():
        exporter.report = ExportReport()
        return exporter.report

    exporter.reset = MagicMock(side_effect=reset)
    exporter.export_page = AsyncMock()
    exporter.checkpoint = MagicMock()
    return exporter


def write_log(tmp_path, *block_ids: str):
    path = tmp_path / "errors.log"
    lines = [f"[2024-05-01T00:00:00.000Z] Process block {bid} (image): HTTP 403" for bid in block_ids]
    lines.append("[2024-05-01T00:00:00.000Z] Import page 9999: gone")
    path.write_text("\n".join(lines) + "\n")
    return path


class TestResolvePageId:
    @pytest.mark.asyncio
    async def test_direct_page_parent(self, tmp_path):
        ctl = RetryController(make_exporter(), blocks_api({"b1": obj("page_id", "p1")}), tmp_path / "x")
        assert await ctl.resolve_page_id("b1") == "p1"

    @pytest.mark.asyncio
    async def test_walks_block_parents(self, tmp_path):
        chain = {
            "b3": obj("block_id", "b2"),
            "b2": obj("block_id", "b1"),
            "b1": obj("page_id", "p1"),
        }
        api = blocks_api(chain)
        ctl = RetryController(make_exporter(), api, tmp_path / "x")
        assert await ctl.resolve_page_id("b3") == "p1"
        assert api.retrieve.await_count == 3

    @pytest.mark.asyncio
    async def test_database_row_resolves_to_itself(self, tmp_path):
        chain = {"b1": obj("block_id", "row1"), "row1": obj("database_id", "d1")}
        ctl = RetryController(make_exporter(), blocks_api(chain), tmp_path / "x")
        assert await ctl.resolve_page_id("b1") == "row1"

    @pytest.mark.parametrize("parent", [obj("workspace"), obj(None), obj("team_id", "t")])
    @pytest.mark.asyncio
    async def test_unresolvable_parent(self, tmp_path, parent):
        ctl = RetryController(make_exporter(), blocks_api({"b1": parent}), tmp_path / "x")
        with pytest.raises(NotionVaultResolutionError):
            await ctl.resolve_page_id("b1")

    @pytest.mark.asyncio
    async def test_api_failure_wrapped(self, tmp_path):
        ctl = RetryController(make_exporter(), blocks_api({}), tmp_path / "x")
        with pytest.raises(NotionVaultResolutionError) as exc_info:
            await ctl.resolve_page_id("gone")
        assert isinstance(exc_info.value.__cause__, NotionVaultNotFoundError)

    @pytest.mark.asyncio
    async def test_depth_cap(self, tmp_path):
        chain = {"loop": obj("block_id", "loop")}
        api = blocks_api(chain)
        ctl = RetryController(make_exporter(), api, tmp_path / "x")
        with pytest.raises(NotionVaultResolutionError, match="deeper than"):
            await ctl.resolve_page_id("loop")
        assert api.retrieve.await_count == MAX_PARENT_DEPTH + 1


class TestListFailedPageIds:
    @pytest.mark.asyncio
    async def test_missing_log(self, tmp_path):
        ctl = RetryController(make_exporter(), blocks_api({}), tmp_path / "errors.log")
        assert await ctl.list_failed_page_ids() == []

    @pytest.mark.asyncio
    async def test_dedupes_pages_in_log_order(self, tmp_path):
        path = write_log(tmp_path, "bb01", "aa02", "cc03")
        chain = {
            "bb01": obj("page_id", "p2"),
            "aa02": obj("page_id", "p1"),
            "cc03": obj("page_id", "p2"),
        }
        ctl = RetryController(make_exporter(), blocks_api(chain), path)
        assert await ctl.list_failed_page_ids() == ["p2", "p1"]

    @pytest.mark.asyncio
    async def test_unresolvable_block_recorded_and_dropped(self, tmp_path):
        path = write_log(tmp_path, "aa01", "dead")
        exporter = make_exporter()
        ctl = RetryController(exporter, blocks_api({"aa01": obj("page_id", "p1")}), path)
        assert await ctl.list_failed_page_ids() == ["p1"]
        assert [e.context for e in exporter.report.errors] == ["Resolve parent of block dead"]

    @pytest.mark.asyncio
    async def test_explicit_log_path(self, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        path = write_log(other, "ab")
        ctl = RetryController(make_exporter(), blocks_api({"ab": obj("page_id", "p7")}), tmp_path / "none")
        assert await ctl.list_failed_page_ids(path) == ["p7"]


class TestRetryFailed:
    @pytest.mark.asyncio
    async def test_exports_owning_pages_and_checkpoints(self, tmp_path):
        path = write_log(tmp_path, "aa01", "bb02")
        chain = {"aa01": obj("page_id", "p1"), "bb02": obj("block_id", "aa01")}
        exporter = make_exporter()
        ctl = RetryController(exporter, blocks_api(chain), path)

        report = await ctl.retry_failed()

        exporter.reset.assert_called_once()
        assert [c.args for c in exporter.export_page.await_args_list] == [("p1",)]
        exporter.checkpoint.assert_called_once()
        assert report is exporter.report

    @pytest.mark.asyncio
    async def test_reset_happens_before_resolution(self, tmp_path):
        path = write_log(tmp_path, "dead")
        exporter = make_exporter()
        stale = exporter.report
        stale.record_error("old", "old failure")
        ctl = RetryController(exporter, blocks_api({}), path)

        report = await ctl.retry_failed()

        assert [e.context for e in report.errors] == ["Resolve parent of block dead"]
        assert stale.stats.errors == 1

    @pytest.mark.asyncio
    async def test_checkpoint_runs_when_export_raises(self, tmp_path):
        path = write_log(tmp_path, "aa01")
        exporter = make_exporter()
        exporter.export_page = AsyncMock(side_effect=RuntimeError("crash"))
        ctl = RetryController(exporter, blocks_api({"aa01": obj("page_id", "p1")}), path)
        with pytest.raises(RuntimeError):
            await ctl.retry_failed()
        exporter.checkpoint.assert_called_once()

    @pytest.mark.asyncio
    async def test_no_log_means_nothing_to_do(self, tmp_path):
        exporter = make_exporter()
        ctl = RetryController(exporter, blocks_api({}), tmp_path / "errors.log")
        report = await ctl.retry_failed()
        exporter.export_page.assert_not_awaited()
        assert report.errors == []
