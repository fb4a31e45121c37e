"""Attachment Materializer: download Notion-hosted files into the tree.

Every image, file and pdf block ends up as one file in the flat
attachments directory.  Naming is idempotent across runs: the
:class:`~notionvault.attachments.index.AttachmentIndex` remembers which
file each owning block produced, so a re-run (or a retry pass) reuses the
file instead of downloading another copy under a suffixed name.

New files are streamed to ``<name>.part`` and renamed into place once
complete; a partial download never appears under a final name.
Redirects are followed by hand so the hop count stays bounded and the
target name is fixed before the first byte arrives.
"""

from __future__ import annotations

import os
from pathlib import Path

import httpx

from notionvault.config import NotionVaultConfig
from notionvault.errors import NotionVaultAttachmentError
from notionvault.models import FileTimes, MaterializedAttachment
from notionvault.observability import NoopMetricsHook, get_logger, kv
from notionvault.utils.redact import redact_url

from .index import AttachmentIndex
from .naming import attachment_extension, numbered_name, sanitize_file_name, source_key
from .timestamps import set_file_timestamps

log = get_logger("notionvault.attachments")

_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})

PART_SUFFIX = ".part"


class AttachmentMaterializer:
    """Materialize attachment URLs as local files.

    Parameters
    ----------
    config:
        Supplies the attachments directory, the name-length cap, the
        redirect limit and the download timeout.
    index:
        Owner → file-name index.  Loaded from the attachments directory
        when omitted.
    client:
        Optional ``httpx.AsyncClient`` used for downloads (tests pass one
        backed by ``httpx.MockTransport``).  Downloads carry no Notion
        credentials; the signed URL is the credential.
    """

    def __init__(
        self,
        config: NotionVaultConfig,
        index: AttachmentIndex | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._dir = config.attachments_path
        self._max_name_length = config.max_file_name_length
        self._max_redirects = config.download_max_redirects
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._index = index if index is not None else AttachmentIndex.load(self._dir)
        self._claimed: set[str] = set()
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
            follow_redirects=False,
        )

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def index(self) -> AttachmentIndex:
        return self._index

    async def materialize(
        self,
        url: str,
        base_name: str,
        owner: str,
        timestamps: FileTimes | None = None,
    ) -> MaterializedAttachment:
        """Return the local file for *owner*'s attachment at *url*.

        When the index maps *owner* to a file that still exists and was
        downloaded from the same source (see
        :func:`~notionvault.attachments.naming.source_key`), that file is
        returned without any network traffic.  Otherwise a fresh name is
        claimed (``<safe><ext>``, ``<safe>-1<ext>``, ...) and the URL is
        downloaded under it.  File times are stamped from *timestamps*.

        Raises
        ------
        NotionVaultAttachmentError
            When the download fails; no file is left behind.
        """
        self._dir.mkdir(parents=True, exist_ok=True)

        source = source_key(url)
        existing = self._index.get(owner)
        known_source = self._index.source(owner)
        if (
            existing
            and (self._dir / existing).is_file()
            and known_source in (None, source)
        ):
            # Entries written without a source adopt the current one.
            self._index.set(owner, existing, source)
            self._claimed.add(existing)
            path = self._dir / existing
            self._stamp(path, timestamps)
            log.debug(
                "Reusing attachment",
                extra=kv(op="materialize", owner=owner, file_name=existing),
            )
            return MaterializedAttachment(path=path, file_name=existing, downloaded=False)

        file_name = self._claim_name(base_name, url)
        path = self._dir / file_name
        try:
            await self._download(url, path)
        except NotionVaultAttachmentError:
            self._claimed.discard(file_name)
            raise

        if existing and known_source not in (None, source):
            log.info(
                "Attachment source changed",
                extra=kv(op="materialize", owner=owner, previous=existing),
            )
        self._index.set(owner, file_name, source)
        self._stamp(path, timestamps)
        self._metrics.increment("notionvault.attachments_downloaded_total")
        log.info(
            "Downloaded attachment",
            extra=kv(op="materialize", owner=owner, file_name=file_name),
        )
        return MaterializedAttachment(path=path, file_name=file_name, downloaded=True)

    async def close(self) -> None:
        await self._client.aclose()

    # -- internals ---------------------------------------------------------

    def _claim_name(self, base_name: str, url: str) -> str:
        ext = attachment_extension(url)
        stem = sanitize_file_name(base_name, self._max_name_length, fallback="attachment")
        # Notion file names usually carry the extension already.
        if stem.lower().endswith(ext.lower()) and len(stem) > len(ext):
            stem = stem[: -len(ext)]

        counter = 0
        while True:
            candidate = numbered_name(stem, ext, counter)
            if candidate not in self._claimed and not (self._dir / candidate).exists():
                self._claimed.add(candidate)
                return candidate
            counter += 1

    async def _download(self, url: str, target: Path) -> None:
        tmp = target.with_name(target.name + PART_SUFFIX)
        current = url
        context = {"url": redact_url(url), "file_name": target.name}
        try:
            for _hop in range(self._max_redirects + 1):
                async with self._client.stream("GET", current) as response:
                    if response.status_code in _REDIRECT_STATUSES:
                        location = response.headers.get("location")
                        if not location:
                            raise NotionVaultAttachmentError(
                                message=f"Redirect {response.status_code} without Location header",
                                context={**context, "status_code": response.status_code},
                            )
                        current = str(response.url.join(location))
                        continue
                    if not 200 <= response.status_code < 300:
                        raise NotionVaultAttachmentError(
                            message=f"Download failed with HTTP {response.status_code}",
                            context={**context, "status_code": response.status_code},
                        )
                    with open(tmp, "wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
                os.replace(tmp, target)
                return
            raise NotionVaultAttachmentError(
                message=f"Too many redirects (more than {self._max_redirects})",
                context=context,
            )
        except httpx.HTTPError as exc:
            raise NotionVaultAttachmentError(
                message=f"Download failed: {exc}",
                context=context,
                cause=exc,
            ) from exc
        except OSError as exc:
            raise NotionVaultAttachmentError(
                message=f"Could not write attachment: {exc}",
                context=context,
                cause=exc,
            ) from exc
        finally:
            if tmp.exists():
                tmp.unlink()

    def _stamp(self, path: Path, timestamps: FileTimes | None) -> None:
        if timestamps is None:
            return
        try:
            set_file_timestamps(path, timestamps.created, timestamps.modified)
        except OSError as exc:
            log.warning(
                "Could not set attachment timestamps",
                extra=kv(path=str(path), error=str(exc)),
            )
