"""Content-edit-time recovery.

Some workspaces had the ``last_edited_time`` of every page bumped by a
bulk operation (a migration, an integration touching all pages).  After
such an event the page timestamp no longer says when the *content*
changed.  Block timestamps are usually unaffected, so the newest block
edit that predates the event is the best estimate of the real one.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime

from notionvault.errors import NotionVaultError
from notionvault.models import Block
from notionvault.observability import get_logger, kv

log = get_logger("notionvault.recovery")


async def recover_true_edit_time(
    blocks: list[Block],
    cutoff: datetime,
    fetch_children: Callable[[str], Awaitable[list[Block]]],
) -> datetime | None:
    """Return the newest block ``last_edited_time`` strictly before *cutoff*.

    The scan is depth-first over *blocks* and their descendants, but does
    not descend into child pages or child databases (their content
    belongs to other pages).  Blocks without a timestamp are ignored.
    A failure fetching one block's children is logged and that subtree
    skipped.  Returns ``None`` when no block qualifies.
    """
    newest: datetime | None = None
    stack: list[Block] = list(reversed(blocks))

    while stack:
        block = stack.pop()
        edited = block.last_edited_time
        if edited is not None and edited < cutoff and (newest is None or edited > newest):
            newest = edited

        if block.has_children and not block.is_child_reference:
            try:
                children = await fetch_children(block.id)
            except NotionVaultError as exc:
                log.warning(
                    "Skipping subtree during edit-time recovery",
                    extra=kv(op="recover_edit_time", block_id=block.id, error=exc.message),
                )
                continue
            stack.extend(reversed(children))

    return newest
