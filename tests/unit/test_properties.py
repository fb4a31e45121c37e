"""Property-based tests for notionvault using Hypothesis.

These tests verify invariant properties of core naming, rendering,
logging and recovery functions.  They complement the example-based unit
tests by exercising the code with a wide range of generated inputs.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import yaml
from hypothesis import given
from hypothesis import strategies as st

from notionvault.attachments.naming import numbered_name, sanitize_file_name
from notionvault.converter.frontmatter import render_frontmatter
from notionvault.converter.inline_renderer import render_rich_text
from notionvault.exporter.error_log import failed_block_ids, format_record
from notionvault.exporter.recovery import recover_true_edit_time
from notionvault.models import Block, BlockType, ErrorRecord, RichTextRun
from notionvault.notion_api.retries import compute_backoff

ILLEGAL = set('\\/:*?"<>|')
EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)

safe_text = st.text(
    alphabet=st.one_of(st.characters(whitelist_categories=("L", "N", "P", "S")), st.just(" ")),
    max_size=80,
)
block_ids = st.from_regex(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}", fullmatch=True)
offsets = st.integers(min_value=0, max_value=1000)


# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------

@given(st.text(max_size=300), st.integers(min_value=1, max_value=120))
def test_sanitized_names_are_safe(name, max_length):
    result = sanitize_file_name(name, max_length)
    assert result
    assert not ILLEGAL & set(result)
    assert len(result) <= max(max_length, len("Untitled"))
    assert result == result.strip()
    assert result not in (".", "..")


@given(st.text(max_size=300))
def test_sanitize_is_idempotent(name):
    once = sanitize_file_name(name)
    assert sanitize_file_name(once) == once


@given(st.text(min_size=1, max_size=20), st.integers(min_value=0, max_value=50), st.integers(min_value=0, max_value=50))
def test_numbered_names_distinct(stem, a, b):
    if a != b:
        assert numbered_name(stem, ".png", a) != numbered_name(stem, ".png", b)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

@given(st.lists(st.text(max_size=30), max_size=10))
def test_plain_runs_render_verbatim(texts):
    runs = [RichTextRun(plain_text=t) for t in texts]
    assert render_rich_text(runs) == "".join(texts)


@given(st.dictionaries(st.from_regex(r"[a-z][a-z_]{0,10}", fullmatch=True), safe_text, max_size=8))
def test_frontmatter_round_trips(data):
    rendered = render_frontmatter(data)
    assert rendered.startswith("---\n") and rendered.endswith("---")
    loaded = yaml.safe_load(rendered[4:-3]) or {}
    assert loaded == data
    assert list(loaded) == list(data)


# ---------------------------------------------------------------------------
# Error log
# ---------------------------------------------------------------------------

@given(block_ids, st.text(max_size=100))
def test_block_marker_survives_formatting(block_id, message):
    record = ErrorRecord(timestamp=EPOCH, context=f"Process block {block_id} (image)", message=message)
    line = format_record(record)
    assert "\n" not in line
    assert failed_block_ids(line) == [block_id]


# ---------------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------------

@given(
    st.integers(min_value=0, max_value=100),
    st.floats(min_value=0, max_value=10, allow_nan=False),
    st.floats(min_value=0, max_value=60, allow_nan=False),
)
def test_backoff_bounded_and_monotonic(attempt, base, maximum):
    delay = compute_backoff(attempt, base=base, maximum=maximum)
    assert 0 <= delay <= maximum
    assert compute_backoff(attempt + 1, base=base, maximum=maximum) >= delay


# ---------------------------------------------------------------------------
# Edit-time recovery
# ---------------------------------------------------------------------------

@given(st.lists(st.one_of(st.none(), offsets), max_size=20), offsets)
def test_recovery_returns_newest_before_cutoff(edit_offsets, cutoff_offset):
    cutoff = EPOCH + timedelta(days=cutoff_offset)
    blocks = [
        Block(
            id=f"b{i}",
            type=BlockType.PARAGRAPH,
            last_edited_time=None if off is None else EPOCH + timedelta(days=off),
        )
        for i, off in enumerate(edit_offsets)
    ]

    async def no_children(block_id):
        return []

    result = asyncio.run(recover_true_edit_time(blocks, cutoff, no_children))
    candidates = [b.last_edited_time for b in blocks if b.last_edited_time and b.last_edited_time < cutoff]
    assert result == (max(candidates) if candidates else None)
