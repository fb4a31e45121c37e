"""Database and search API wrappers for the Notion API.

:class:`AsyncDatabaseAPI` retrieves a database (title and property
schema) and queries all of its member pages; :class:`AsyncSearchAPI`
enumerates every page and database shared with the integration.  Both
list operations use the same 100-per-page cursor protocol as block
children.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from .transport import AsyncNotionTransport


class AsyncDatabaseAPI:
    """Asynchronous wrapper for the Notion Databases API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, database_id: str) -> dict[str, Any]:
        """Retrieve a database object (title, url, ``properties`` schema)."""
        return await self._transport.request("GET", f"/databases/{database_id}")

    async def query(self, database_id: str) -> list[dict[str, Any]]:
        """Return every page of a database, auto-paginating.

        Results without ``properties`` (partial objects) are dropped.
        """
        return [
            item
            async for item in self._transport.paginate(
                f"/databases/{database_id}/query",
                method="POST",
            )
            if "properties" in item
        ]


class AsyncSearchAPI:
    """Asynchronous wrapper for the Notion Search API."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    def iter_all(self) -> AsyncIterator[dict[str, Any]]:
        """Yield every page and database the integration can see.

        The sequence is produced lazily, one page of 100 results at a
        time, so callers can start exporting before the search completes.
        """
        return self._transport.paginate("/search", method="POST")
