"""notionvault.notion_api -- Notion API retrieval layer.

This sub-package provides:

* :mod:`.rate_limit` -- Token bucket request pacing.
* :mod:`.retries` -- Retry decision logic and linear backoff.
* :mod:`.transport` -- HTTP transport with auth, retries, pagination.
* :mod:`.blocks` -- Block children and block retrieval.
* :mod:`.pages` -- Page and user retrieval.
* :mod:`.databases` -- Database retrieval/query and workspace search.
"""

from __future__ import annotations

from .blocks import AsyncBlockAPI
from .databases import AsyncDatabaseAPI, AsyncSearchAPI
from .pages import AsyncPageAPI, AsyncUserAPI
from .rate_limit import AsyncTokenBucket
from .retries import compute_backoff, should_retry
from .transport import PAGE_SIZE, AsyncNotionTransport

__all__ = [
    "PAGE_SIZE",
    "AsyncBlockAPI",
    "AsyncDatabaseAPI",
    "AsyncNotionTransport",
    "AsyncPageAPI",
    "AsyncSearchAPI",
    "AsyncTokenBucket",
    "AsyncUserAPI",
    "compute_backoff",
    "should_retry",
]
