"""YAML frontmatter for exported pages and database description files.

Key order is fixed: ``notion-id``, ``created``, ``updated``,
``content_updated`` (only when recovered), ``created_by``,
``updated_by``, ``source``, then one key per non-title page property
with a non-empty value.  Values are serialised with PyYAML's
``safe_dump`` so titles and property values containing ``:``, ``#`` or
newlines are quoted correctly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import yaml

from notionvault.errors import NotionVaultConversionError, NotionVaultError
from notionvault.models import Database, Page, PropertyValue
from notionvault.observability import get_logger, kv

from .adapter import plain_text, rich_text_from_api

log = get_logger("notionvault.frontmatter")

LOCAL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_local_datetime(value: datetime | None) -> str | None:
    """Render *value* in local time without offset (``YYYY-MM-DDTHH:MM:SS``)."""
    if value is None:
        return None
    return value.astimezone().strftime(LOCAL_DATETIME_FORMAT)


def _name(obj: dict | None) -> str | None:
    return (obj or {}).get("name")


def extract_property(prop: PropertyValue) -> Any:
    """Return the frontmatter value of one page property, or ``None``.

    formula, rollup, relation and other kinds are not exported.
    """
    raw = prop.raw
    ptype = prop.type
    if ptype == "rich_text":
        return plain_text(rich_text_from_api(raw.get("rich_text")))
    if ptype == "number":
        return raw.get("number")
    if ptype in ("select", "status"):
        return _name(raw.get(ptype))
    if ptype == "multi_select":
        return [opt.get("name") for opt in raw.get("multi_select") or [] if opt.get("name")]
    if ptype == "date":
        return (raw.get("date") or {}).get("start")
    if ptype in ("checkbox", "url", "email", "phone_number"):
        return raw.get(ptype)
    if ptype == "people":
        return [p.get("name") or p.get("id") for p in raw.get("people") or []]
    return None


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def extract_properties(properties: dict[str, PropertyValue]) -> dict[str, Any]:
    """Extract every exportable, non-empty, non-title property."""
    result: dict[str, Any] = {}
    for name, prop in properties.items():
        if prop.type == "title":
            continue
        try:
            value = extract_property(prop)
        except (AttributeError, TypeError) as exc:
            log.debug(
                "Skipping malformed property",
                extra=kv(property=name, property_type=prop.type, error=str(exc)),
            )
            continue
        if not _is_empty(value):
            result[name] = value
    return result


class UserNameResolver:
    """Resolve user ids to display names, caching per run.

    Falls back to the user's e-mail, then to the raw id when the lookup
    fails (bots, deleted users, missing capability).
    """

    def __init__(self, users) -> None:
        self._users = users
        self._cache: dict[str, str] = {}

    async def resolve(self, user_id: str) -> str:
        if user_id in self._cache:
            return self._cache[user_id]
        try:
            user = await self._users.retrieve(user_id)
        except NotionVaultError as exc:
            log.debug(
                "User lookup failed; using id",
                extra=kv(user_id=user_id, error=exc.message),
            )
            name = user_id
        else:
            name = user.get("name") or (user.get("person") or {}).get("email") or user_id
        self._cache[user_id] = name
        return name


async def build_page_frontmatter(
    page: Page,
    users: UserNameResolver,
    content_updated: datetime | None = None,
) -> dict[str, Any]:
    """Assemble the ordered frontmatter mapping for *page*."""
    fm: dict[str, Any] = {"notion-id": page.id}
    if page.created_time:
        fm["created"] = format_local_datetime(page.created_time)
    if page.last_edited_time:
        fm["updated"] = format_local_datetime(page.last_edited_time)
    if content_updated:
        fm["content_updated"] = format_local_datetime(content_updated)
    if page.created_by:
        fm["created_by"] = await users.resolve(page.created_by)
    if page.last_edited_by:
        fm["updated_by"] = await users.resolve(page.last_edited_by)
    if page.url:
        fm["source"] = page.url
    for name, value in extract_properties(page.properties).items():
        # Property names never shadow the metadata keys above.
        fm.setdefault(name, value)
    return fm


def build_database_frontmatter(database: Database, title: str) -> dict[str, Any]:
    """Frontmatter of a database's ``_<name>.base.md`` description file."""
    return {
        "notion-id": database.id,
        "title": title,
        "url": database.url,
        "properties": list(database.property_names),
    }


def render_frontmatter(data: dict[str, Any]) -> str:
    """Serialise *data* as a ``---``-fenced YAML block (no trailing newline).

    Examples
    --------
    >>> render_frontmatter({"notion-id": "abc", "tags": ["a", "b"]})
    '---\\nnotion-id: abc\\ntags:\\n- a\\n- b\\n---'
    """
    try:
        body = yaml.safe_dump(
            data,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            width=1000,
        )
    except yaml.YAMLError as exc:
        raise NotionVaultConversionError(
            message=f"Cannot serialise frontmatter: {exc}",
            context={"keys": list(data)},
            cause=exc,
        ) from exc
    return f"---\n{body}---"
