"""Page and user API wrappers for the Notion API.

:class:`AsyncPageAPI` retrieves a page with its properties and actor
references; :class:`AsyncUserAPI` resolves an actor id to a user object
for the ``created_by`` / ``updated_by`` frontmatter fields.
"""

from __future__ import annotations

from typing import Any

from .transport import AsyncNotionTransport


class AsyncPageAPI:
    """Asynchronous wrapper for the Notion Pages API.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncNotionTransport` instance.
    """

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, page_id: str) -> dict[str, Any]:
        """Retrieve a page by its ID (with or without hyphens).

        Returns
        -------
        dict
            The full page object, including ``properties``,
            ``created_by`` and ``last_edited_by``.
        """
        return await self._transport.request("GET", f"/pages/{page_id}")


class AsyncUserAPI:
    """Asynchronous wrapper for the Notion Users API."""

    def __init__(self, transport: AsyncNotionTransport) -> None:
        self._transport = transport

    async def retrieve(self, user_id: str) -> dict[str, Any]:
        """Retrieve a user (person or bot) by its ID."""
        return await self._transport.request("GET", f"/users/{user_id}")
