"""Full error hierarchy for notionvault.

Every error class inherits from :class:`NotionVaultError`.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

The exporter catches these at block, page and database scope and turns
them into error-log records; only errors escaping the top-level run are
fatal.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONVERSION_ERROR = "CONVERSION_ERROR"
    ATTACHMENT_ERROR = "ATTACHMENT_ERROR"
    RESOLUTION_ERROR = "RESOLUTION_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NotionVaultError(Exception):
    """Base exception for all notionvault errors.

    Subclasses pin their category through the ``error_code`` class
    attribute, so call sites only pass the message and diagnostics.

    Parameters
    ----------
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    code:
        Overrides the class's ``error_code``.
    """

    error_code: ClassVar[ErrorCode | None] = None

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
        *,
        code: str | None = None,
    ) -> None:
        self.code: str | None = code if code is not None else self.error_code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# API / transport errors
# ---------------------------------------------------------------------------

class NotionVaultValidationError(NotionVaultError):
    """Notion API returned 400 (or another non-retryable 4xx).

    Also raised for bad local input, such as a missing attachments
    directory.  Context keys: ``status_code``, ``notion_code``, ``body``.
    """

    error_code = ErrorCode.VALIDATION_ERROR


class NotionVaultAuthError(NotionVaultError):
    """Notion API returned 401: the integration token is invalid or expired.

    Treated as fatal by the CLI: nothing can be exported without a token.
    """

    error_code = ErrorCode.AUTH_ERROR


class NotionVaultPermissionError(NotionVaultError):
    """Notion API returned 403: the integration lacks access to the resource.

    Context keys: ``status_code``, ``notion_code``, ``operation``.
    """

    error_code = ErrorCode.PERMISSION_ERROR


class NotionVaultNotFoundError(NotionVaultError):
    """Notion API returned 404.

    Context keys: ``status_code``, ``notion_code``, ``path``.
    """

    error_code = ErrorCode.NOT_FOUND


class NotionVaultRetryExhaustedError(NotionVaultError):
    """Every attempt at a retryable request came back 429 or 5xx.

    Context keys: ``attempts``, ``last_status_code``.
    """

    error_code = ErrorCode.RETRY_EXHAUSTED


class NotionVaultNetworkError(NotionVaultError):
    """Timeouts or connection failures outlasted the retry budget.

    Context keys: ``url``, ``attempt``.
    """

    error_code = ErrorCode.NETWORK_ERROR


# ---------------------------------------------------------------------------
# Export errors
# ---------------------------------------------------------------------------

class NotionVaultConversionError(NotionVaultError):
    """A block or page could not be converted to markdown.

    Context keys: ``block_id``, ``block_type``.
    """

    error_code = ErrorCode.CONVERSION_ERROR


class NotionVaultAttachmentError(NotionVaultError):
    """An attachment could not be downloaded to the attachments directory.

    Context keys: ``url``, ``file_name``, ``status_code``.
    """

    error_code = ErrorCode.ATTACHMENT_ERROR


class NotionVaultResolutionError(NotionVaultError):
    """The owning page of a failed block could not be determined.

    Context keys: ``block_id``, ``parent_type``, ``depth``.
    """

    error_code = ErrorCode.RESOLUTION_ERROR
