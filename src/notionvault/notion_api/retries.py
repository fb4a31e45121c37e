"""Retry decision logic and linear backoff computation.

Two pure functions used by the transport:

* :func:`should_retry` -- decide whether a failed request is retryable.
* :func:`compute_backoff` -- compute the delay before the next attempt.

Each API request (one page of results, one page retrieval, ...) is
retried on its own; a failing cursor page never restarts the pages
already collected.
"""

from __future__ import annotations

import httpx

# HTTP status codes that are safe to retry.
_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Network-level exceptions that warrant a retry.
_RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether a request should be retried.

    Parameters
    ----------
    status_code:
        HTTP status code from the response, or ``None`` if no response was
        received.
    exception:
        The exception that was raised, or ``None`` if a response was
        received.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts allowed (including the initial request).
    """
    if attempt + 1 >= max_attempts:
        return False

    if exception is not None:
        return isinstance(exception, _RETRYABLE_EXCEPTIONS)

    if status_code is not None:
        return status_code in _RETRYABLE_STATUSES

    return False


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    retry_after: float | None = None,
) -> float:
    """Compute the delay before the next retry attempt.

    The delay grows linearly: after the first failed attempt
    (``attempt=0``) the caller waits ``base``, after the second
    ``2 * base``, and so on, capped at *maximum*.  A server-provided
    ``Retry-After`` value (429 responses) takes precedence.

    Parameters
    ----------
    attempt:
        The attempt that just failed (0-indexed).
    base:
        Linear step in seconds.
    maximum:
        Maximum delay cap in seconds.
    retry_after:
        Value of the ``Retry-After`` header (seconds), if present.

    Returns
    -------
    float
        Delay in seconds, never negative.
    """
    if retry_after is not None:
        return max(0.0, retry_after)
    return min(base * (attempt + 1), maximum)
