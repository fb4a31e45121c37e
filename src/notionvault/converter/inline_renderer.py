"""Inline rendering: rich-text runs to markdown strings.

Annotation order is fixed (innermost first)::

    code -> bold -> italic -> strikethrough -> link

so a bold italic run renders as ``***text***`` and a linked code run as
``[`text`](href)``.  Text is emitted verbatim: exported notes keep the
characters their authors typed, and no markdown escaping is applied.
"""

from __future__ import annotations

from notionvault.models import RichTextRun


def render_run(run: RichTextRun) -> str:
    """Render a single run with its annotations and link."""
    text = run.plain_text
    ann = run.annotations
    if ann.code:
        text = f"`{text}`"
    if ann.bold:
        text = f"**{text}**"
    if ann.italic:
        text = f"*{text}*"
    if ann.strikethrough:
        text = f"~~{text}~~"
    if run.href:
        text = f"[{text}]({run.href})"
    return text


def render_rich_text(runs: list[RichTextRun] | None) -> str:
    """Render a rich-text array to markdown, preserving run order."""
    if not runs:
        return ""
    return "".join(render_run(run) for run in runs)
