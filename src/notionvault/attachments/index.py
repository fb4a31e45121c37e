"""Persistent owner → file-name index for the attachments directory.

Notion serves attachments from signed URLs that change on every request,
so the full URL cannot identify a file across runs.  The index instead
maps the id of the block that owns an attachment to the file it
produced, together with the source key (URL host and path) it was
downloaded from.  A re-run reuses the file while the source key still
matches and downloads afresh when the block now points at another
upload.

The index is loaded when a run starts and saved at the end-of-run
checkpoint; the duplicate fixer rewrites entries that point at deleted
losers.
"""

from __future__ import annotations

import json
from pathlib import Path

from notionvault.observability import get_logger, kv
from notionvault.utils.fs import write_text_atomic

log = get_logger("notionvault.attachments")

INDEX_FILE_NAME = ".notionvault-index.json"


class AttachmentIndex:
    """Owner id → attachment file name and source key."""

    def __init__(self, attachments_dir: str | Path) -> None:
        self.path = Path(attachments_dir) / INDEX_FILE_NAME
        self._entries: dict[str, dict[str, str | None]] = {}
        self._dirty = False

    @classmethod
    def load(cls, attachments_dir: str | Path) -> AttachmentIndex:
        """Read the index, starting empty if it is missing or unreadable.

        Plain ``owner: file`` entries are accepted with an unknown source.
        """
        index = cls(attachments_dir)
        if not index.path.exists():
            return index
        try:
            data = json.loads(index.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning(
                "Ignoring unreadable attachment index",
                extra=kv(path=str(index.path), error=str(exc)),
            )
            return index
        if not isinstance(data, dict):
            return index
        for owner, value in data.items():
            if isinstance(value, dict) and value.get("file"):
                source = value.get("source")
                index._entries[str(owner)] = {
                    "file": str(value["file"]),
                    "source": str(source) if source else None,
                }
            elif isinstance(value, str):
                index._entries[str(owner)] = {"file": value, "source": None}
        return index

    def get(self, owner: str) -> str | None:
        entry = self._entries.get(owner)
        return entry["file"] if entry else None

    def source(self, owner: str) -> str | None:
        entry = self._entries.get(owner)
        return entry["source"] if entry else None

    def set(self, owner: str, file_name: str, source: str | None = None) -> None:
        entry = {"file": file_name, "source": source}
        if self._entries.get(owner) != entry:
            self._entries[owner] = entry
            self._dirty = True

    def rename(self, old_name: str, new_name: str) -> int:
        """Point every owner of *old_name* at *new_name*; return the count."""
        changed = 0
        for entry in self._entries.values():
            if entry["file"] == old_name:
                entry["file"] = new_name
                changed += 1
        if changed:
            self._dirty = True
        return changed

    def save(self) -> None:
        """Write the index if anything changed since it was loaded."""
        if not self._dirty:
            return
        write_text_atomic(
            self.path,
            json.dumps(self._entries, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
        )
        self._dirty = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, owner: object) -> bool:
        return owner in self._entries
