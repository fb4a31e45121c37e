"""Async HTTP transport for the Notion API.

Request lifecycle:

1. Acquire a token-bucket slot (await if needed).
2. Send the HTTP request with auth and version headers.
3. On ``2xx`` -- return the parsed JSON response.
4. On ``429`` / ``5xx`` / network error -- wait ``attempt * base`` seconds
   (or ``Retry-After``) and retry the same request.
5. On non-retryable ``4xx`` -- raise the matching typed error immediately.
6. On max attempts exceeded -- raise :class:`NotionVaultRetryExhaustedError`
   (or :class:`NotionVaultNetworkError` for transport failures).

:meth:`AsyncNotionTransport.paginate` drives the ``start_cursor`` /
``has_more`` protocol on top of :meth:`AsyncNotionTransport.request`, so
every page of results is retried independently.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import AsyncIterator
from typing import Any

import httpx

from notionvault.config import NotionVaultConfig
from notionvault.errors import (
    NotionVaultAuthError,
    NotionVaultNetworkError,
    NotionVaultNotFoundError,
    NotionVaultPermissionError,
    NotionVaultRetryExhaustedError,
    NotionVaultValidationError,
)
from notionvault.observability import NoopMetricsHook, get_logger, kv

from .rate_limit import AsyncTokenBucket
from .retries import _RETRYABLE_EXCEPTIONS, _RETRYABLE_STATUSES, compute_backoff, should_retry

log = get_logger("notionvault.transport")

PAGE_SIZE = 100
"""Results requested per page of a paginated endpoint (the API maximum)."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the ``Retry-After`` header value as a float, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the appropriate typed error for a non-retryable 4xx response."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    notion_message = body.get("message", response.text[:500])
    notion_code = body.get("code", "")

    if status == 401:
        raise NotionVaultAuthError(
            message=f"Authentication failed on {method} {path}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code},
        )
    if status == 403:
        raise NotionVaultPermissionError(
            message=f"Permission denied on {method} {path}: {notion_message}",
            context={
                "status_code": status,
                "notion_code": notion_code,
                "operation": f"{method} {path}",
            },
        )
    if status == 404:
        raise NotionVaultNotFoundError(
            message=f"Resource not found on {method} {path}: {notion_message}",
            context={"status_code": status, "notion_code": notion_code, "path": path},
        )

    raise NotionVaultValidationError(
        message=f"Client error {status} on {method} {path}: {notion_message}",
        context={"status_code": status, "notion_code": notion_code, "body": body},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from notionvault.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(
        _json.dumps(redact(dump, token), indent=2, default=str),
        file=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class AsyncNotionTransport:
    """Asynchronous HTTP transport with auth, retry, and rate limiting.

    Parameters
    ----------
    config:
        A :class:`NotionVaultConfig` controlling transport behaviour.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests pass one backed by
        ``httpx.MockTransport``).  When omitted, a client is created from
        *config*.
    """

    def __init__(
        self,
        config: NotionVaultConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._bucket = AsyncTokenBucket(rate_rps=config.rate_limit_rps)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._client = client or httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.notion_version,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    # -- public API --------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute an HTTP request against the Notion API.

        Parameters
        ----------
        method:
            HTTP method (``GET``, ``POST``, ...).
        path:
            API path relative to ``base_url`` (e.g. ``/pages/abc``).
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request` (``json=``,
            ``params=``).

        Returns
        -------
        dict
            Parsed JSON response body.

        Raises
        ------
        NotionVaultAuthError
            On 401 responses.
        NotionVaultPermissionError
            On 403 responses.
        NotionVaultNotFoundError
            On 404 responses.
        NotionVaultValidationError
            On 400 and other non-retryable 4xx responses.
        NotionVaultRetryExhaustedError
            When every attempt got a retryable status.
        NotionVaultNetworkError
            When every attempt failed at the transport level.
        """
        max_attempts = self._config.retry_max_attempts
        last_status: int | None = None
        tags = {"method": method, "path": path}

        for attempt in range(max_attempts):
            wait = await self._bucket.acquire()
            if wait > 0:
                self._metrics.timing("notionvault.rate_limit_wait_ms", wait * 1000, tags=tags)

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, **kwargs)
            except _RETRYABLE_EXCEPTIONS as exc:
                last_status = None
                self._metrics.increment(
                    "notionvault.requests_total", tags={**tags, "status": "error"}
                )
                if not should_retry(None, exc, attempt, max_attempts):
                    raise NotionVaultNetworkError(
                        message=f"Network error on {method} {path}: {exc}",
                        context={"url": path, "attempt": attempt + 1},
                        cause=exc,
                    ) from exc
                await self._backoff(method, path, attempt, "network_error", error=str(exc))
                continue

            elapsed_ms = (time.monotonic() - t0) * 1000
            last_status = response.status_code
            status_tags = {**tags, "status": str(response.status_code)}
            self._metrics.increment("notionvault.requests_total", tags=status_tags)
            self._metrics.timing("notionvault.request_duration_ms", elapsed_ms, tags=status_tags)

            if self._config.debug_dump_payload:
                self._debug_dump(method, response, kwargs.get("json"))

            if 200 <= response.status_code < 300:
                if response.status_code == 204 or not response.content:
                    return {}
                result: dict = response.json()
                return result

            if response.status_code not in _RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after: float | None = None
            reason = "server_error"
            if response.status_code == 429:
                retry_after = _parse_retry_after(response)
                reason = "rate_limited"
                self._metrics.increment("notionvault.rate_limited_total", tags=tags)
            await self._backoff(
                method, path, attempt, reason,
                retry_after=retry_after, status_code=response.status_code,
            )

        raise NotionVaultRetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    async def paginate(self, path: str, **kwargs: Any) -> AsyncIterator[dict]:
        """Auto-paginate a Notion list endpoint, yielding each result item.

        ``GET`` endpoints receive ``page_size`` / ``start_cursor`` as query
        parameters; ``POST`` endpoints (database query, search) receive
        them in the JSON body.  Pass ``method="POST"`` for the latter.
        """
        method = kwargs.pop("method", "GET")
        cursor: str | None = None

        while True:
            if method.upper() == "POST":
                json_body: dict = dict(kwargs.get("json") or {})
                json_body["page_size"] = PAGE_SIZE
                if cursor is not None:
                    json_body["start_cursor"] = cursor
                kwargs["json"] = json_body
            else:
                params: dict = dict(kwargs.get("params") or {})
                params["page_size"] = PAGE_SIZE
                if cursor is not None:
                    params["start_cursor"] = cursor
                kwargs["params"] = params

            data = await self.request(method, path, **kwargs)
            for item in data.get("results", []):
                yield item

            if not data.get("has_more", False):
                break
            cursor = data.get("next_cursor")
            if cursor is None:
                break

    async def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncNotionTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    async def _backoff(
        self,
        method: str,
        path: str,
        attempt: int,
        reason: str,
        retry_after: float | None = None,
        **fields: Any,
    ) -> None:
        delay = compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            retry_after=retry_after,
        )
        self._metrics.increment(
            "notionvault.retries_total",
            tags={"method": method, "path": path, "reason": reason},
        )
        log.warning(
            "Retrying Notion API request",
            extra=kv(
                op="request",
                method=method,
                path=path,
                reason=reason,
                attempt=attempt + 1,
                max_attempts=self._config.retry_max_attempts,
                delay_s=delay,
                **fields,
            ),
        )
        await asyncio.sleep(delay)

    def _debug_dump(self, method: str, response: httpx.Response, payload: Any) -> None:
        try:
            resp_body = response.json()
        except ValueError:
            resp_body = response.text[:1000]
        _dump_payload(
            method, str(response.url), payload,
            response.status_code, resp_body,
            token=self._config.token,
        )
