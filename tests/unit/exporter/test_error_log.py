"""Tests for error-log formatting, writing and block-id extraction."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from notionvault.exporter.error_log import (
    failed_block_ids,
    format_error_log,
    format_record,
    format_timestamp,
    write_error_log,
)
from notionvault.models import ErrorRecord

WHEN = datetime(2024, 5, 1, 9, 30, 12, 345678, tzinfo=timezone.utc)


def record(context="Import page abc", message="boom", when=WHEN) -> ErrorRecord:
    return ErrorRecord(timestamp=when, context=context, message=message)


class TestFormatting:
    def test_timestamp_millis_and_z(self):
        assert format_timestamp(record()) == "2024-05-01T09:30:12.345Z"

    def test_timestamp_converted_to_utc(self):
        local = WHEN.astimezone(timezone(timedelta(hours=2)))
        assert format_timestamp(record(when=local)) == "2024-05-01T09:30:12.345Z"

    def test_record_line(self):
        line = format_record(record("Process block 1a2b (image)", "HTTP 403"))
        assert line == "[2024-05-01T09:30:12.345Z] Process block 1a2b (image): HTTP 403"

    def test_multiline_message_flattened(self):
        line = format_record(record(message="first\n  second\r\nthird"))
        assert line.endswith(": first second third")
        assert "\n" not in line

    def test_log_joins_lines(self):
        text = format_error_log([record("a"), record("b")])
        assert text.count("\n") == 1


class TestWriteErrorLog:
    def test_writes_records(self, tmp_path):
        path = tmp_path / "errors.log"
        assert write_error_log(path, [record(), record("Process block ff (toggle)")]) == path
        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert lines[1].startswith("[2024-05-01T09:30:12.345Z] Process block ff")

    def test_clean_run_removes_stale_log(self, tmp_path):
        path = tmp_path / "errors.log"
        path.write_text("old")
        assert write_error_log(path, []) is None
        assert not path.exists()

    def test_clean_run_without_log(self, tmp_path):
        assert write_error_log(tmp_path / "errors.log", []) is None


class TestFailedBlockIds:
    def test_extracts_in_first_seen_order(self):
        text = "\n".join([
            "[t] Process block bb-02 (image): x",
            "[t] Import page cc-03: y",
            "[t] Process block aa-01 (toggle): z",
            "[t] Process block bb-02 (file): w",
        ])
        assert failed_block_ids(text) == ["bb-02", "aa-01"]

    def test_round_trip_through_written_log(self, tmp_path):
        path = tmp_path / "errors.log"
        write_error_log(path, [record("Process block 0f1e2d3c-0000-4a4a-8b8b-123456789abc (image)")])
        assert failed_block_ids(path.read_text()) == ["0f1e2d3c-0000-4a4a-8b8b-123456789abc"]

    def test_no_markers(self):
        assert failed_block_ids("[t] Import database dd: gone") == []
