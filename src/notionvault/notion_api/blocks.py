"""Block API wrapper for the Notion API.

Provides :class:`AsyncBlockAPI`, a thin wrapper around the ``/blocks``
endpoints the exporter needs: fetching all children of a block (with
transparent pagination) and retrieving one block to walk its parent
chain during retry.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport


class AsyncBlockAPI:
    """Asynchronous wrapper for the Notion Blocks API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, block_id: str) -> dict[str, Any]:
        """Retrieve a single block (or page-as-block) by its ID."""
        return await self._transport.request("GET", f"/blocks/{block_id}")

    async def get_children(self, block_id: str) -> list[dict[str, Any]]:
        """Retrieve all children of a block, auto-paginating.

        Issues as many ``GET /blocks/{block_id}/children`` requests as
        necessary; each page of 100 results is retried on its own.
        Partial objects without a ``type`` (returned for blocks the
        integration cannot read) are dropped.

        Parameters
        ----------
        block_id:
            The UUID of the parent block or page.

        Returns
        -------
        list[dict]
            All child block objects in document order.
        """
        return [
            item
            async for item in self._transport.paginate(
                f"/blocks/{block_id}/children",
                method="GET",
            )
            if "type" in item
        ]
