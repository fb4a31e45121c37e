"""Deduplication Engine: collapse identical attachments into one copy.

Repeated exports accumulate byte-identical attachments under different
names (``diagram.png``, ``diagram-1.png``, ...).  Cleanup is two-phase:

1. **Detect** (:class:`DuplicateFinder`) -- group files by size, confirm
   with SHA-256, and within each group of identical files keep the
   oldest one.
2. **Apply** (:class:`DuplicateFixer`) -- rewrite references in every
   markdown file from each loser's name to its keeper's name, and only
   then remove the losers.

References are matched by base name, not full path, which is sound
because the attachments directory is flat.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections import defaultdict
from pathlib import Path

from notionvault.attachments import PART_SUFFIX, AttachmentIndex
from notionvault.config import DEFAULT_ATTACHMENTS_DIRNAME
from notionvault.errors import NotionVaultValidationError
from notionvault.models import DedupResult, DuplicatePair
from notionvault.observability import get_logger, kv
from notionvault.utils.fs import write_text_atomic
from notionvault.utils.hashing import sha256_file

log = get_logger("notionvault.dedup")

DEFAULT_MIN_SIZE_BYTES = 64 * 1024


def file_age(path: Path) -> float:
    """The earlier of modification time and creation time.

    Creation time is ``st_birthtime`` where the platform records it and
    ``st_ctime`` otherwise.
    """
    st = path.stat()
    created = getattr(st, "st_birthtime", st.st_ctime)
    return min(st.st_mtime, created)


class DuplicateFinder:
    """Find duplicate attachments.

    Parameters
    ----------
    attachments_dir:
        The flat attachments directory of an export.
    min_size_bytes:
        Files smaller than this are never considered.
    """

    def __init__(self, attachments_dir: str | Path, min_size_bytes: int = DEFAULT_MIN_SIZE_BYTES) -> None:
        self.attachments_dir = Path(attachments_dir)
        self.min_size_bytes = min_size_bytes

    def scan(self) -> list[Path]:
        """Candidate files in encounter (name) order.

        Dotfiles (the attachment index, temp files) and in-flight
        ``.part`` downloads are ignored.
        """
        if not self.attachments_dir.is_dir():
            raise NotionVaultValidationError(
                message=f"Attachments directory not found: {self.attachments_dir}",
                context={"path": str(self.attachments_dir)},
            )
        return sorted(
            p for p in self.attachments_dir.iterdir()
            if p.is_file() and not p.name.startswith(".") and not p.name.endswith(PART_SUFFIX)
        )

    def find(self) -> list[DuplicatePair]:
        """Return one :class:`DuplicatePair` per redundant file.

        Every member of a group of identical files except the keeper is a
        loser of that keeper.  The keeper has the smallest
        :func:`file_age`; ties go to the first file in encounter order.
        A keeper is never itself a loser.
        """
        files = self.scan()
        by_size: dict[int, list[Path]] = defaultdict(list)
        for path in files:
            size = path.stat().st_size
            if size < self.min_size_bytes:
                continue
            by_size[size].append(path)

        pairs: list[DuplicatePair] = []
        for group in by_size.values():
            if len(group) < 2:
                continue
            by_hash: dict[str, list[Path]] = defaultdict(list)
            for path in group:
                by_hash[sha256_file(path)].append(path)
            for members in by_hash.values():
                if len(members) < 2:
                    continue
                # min() keeps the first of equal ages.
                keeper = min(members, key=file_age)
                pairs.extend(
                    DuplicatePair(loser=path, keeper=keeper)
                    for path in members
                    if path != keeper
                )

        pairs.sort(key=lambda pair: files.index(pair.loser))
        log.info(
            "Duplicate scan complete",
            extra=kv(op="find_duplicates", scanned=len(files), duplicates=len(pairs)),
        )
        return pairs


class DuplicateFixer:
    """Rewrite references to duplicates and remove them.

    Parameters
    ----------
    base_dir:
        Root of the export (the directory holding ``attachments/``).
    attachments_dirname:
        Name of the attachments directory inside *base_dir*.
    """

    def __init__(self, base_dir: str | Path, attachments_dirname: str = DEFAULT_ATTACHMENTS_DIRNAME) -> None:
        self.base_dir = Path(base_dir)
        self.attachments_dir = self.base_dir / attachments_dirname

    def apply(self, pairs: list[DuplicatePair]) -> DedupResult:
        """Rewrite every markdown reference, then delete every loser.

        No loser is removed unless all markdown rewrites were written; an
        ``OSError`` during the rewrite phase propagates with every
        attachment still in place.
        """
        result = DedupResult()
        if not pairs:
            return result

        renames = [(pair.loser.name, pair.keeper.name) for pair in pairs]

        for md_file in sorted(self.base_dir.rglob("*.md")):
            content = md_file.read_text(encoding="utf-8")
            updated = content
            for loser_name, keeper_name in renames:
                occurrences = updated.count(loser_name)
                if occurrences:
                    updated = updated.replace(loser_name, keeper_name)
                    result.references_updated += occurrences
            if updated != content:
                write_text_atomic(md_file, updated)
                result.files_updated += 1
                log.info(
                    "Updated references",
                    extra=kv(op="rewrite_references", path=str(md_file.relative_to(self.base_dir))),
                )

        index = AttachmentIndex.load(self.attachments_dir)
        if len(index):
            for loser_name, keeper_name in renames:
                index.rename(loser_name, keeper_name)
            index.save()

        for pair in pairs:
            if not pair.loser.exists():
                continue
            size = pair.loser.stat().st_size
            _remove(pair.loser)
            result.deleted += 1
            result.bytes_freed += size
            log.info(
                "Removed duplicate",
                extra=kv(op="remove_duplicate", file=pair.loser.name, keeper=pair.keeper.name, size=size),
            )
        return result


def _remove(path: Path) -> None:
    """Move *path* to the trash when a ``trash`` command exists, else delete it."""
    trash = shutil.which("trash")
    if trash is not None:
        completed = subprocess.run([trash, str(path)], check=False)
        if completed.returncode == 0 and not path.exists():
            return
        log.warning(
            "trash failed; deleting permanently",
            extra=kv(path=str(path), returncode=completed.returncode),
        )
    if path.exists():
        os.unlink(path)
