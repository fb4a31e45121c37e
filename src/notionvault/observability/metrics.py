"""Metrics hook protocol and no-op default implementation.

The retrieval layer and the exporter emit counters and timings at key
points.  By default a :class:`NoopMetricsHook` discards them; callers can
pass any object satisfying :class:`MetricsHook` as
``NotionVaultConfig.metrics`` to forward them to StatsD, Prometheus, etc.

Emitted metric names:

* ``notionvault.requests_total``              -- counter
* ``notionvault.retries_total``               -- counter
* ``notionvault.rate_limited_total``          -- counter
* ``notionvault.request_duration_ms``         -- timing
* ``notionvault.rate_limit_wait_ms``          -- timing
* ``notionvault.pages_exported_total``        -- counter
* ``notionvault.databases_exported_total``    -- counter
* ``notionvault.attachments_downloaded_total``-- counter
* ``notionvault.export_errors_total``         -- counter
* ``notionvault.page_export_duration_ms``     -- timing
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* are string key/value pairs; backends translate them into their
    own tagging mechanism.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment the counter *name* by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration of *ms* milliseconds."""
        ...


class NoopMetricsHook:
    """Default backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
