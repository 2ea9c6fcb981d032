"""Transport error hierarchy.

All transport errors inherit from ToolLoopError for consistent exception
handling. ``retryable`` tells the driver whether re-sending the same
request may succeed.
"""

from __future__ import annotations

from toolloop.exceptions import ToolLoopError


class LLMClientError(ToolLoopError):
    """Base for all LLM transport errors."""

    retryable: bool = False


class LLMConfigError(LLMClientError):
    """Missing or invalid client configuration (e.g., no API key)."""


class LLMRateLimitError(LLMClientError):
    """Rate limited by the API (429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header),
            or None if not provided.
    """

    retryable = True

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMServerError(LLMClientError):
    """Provider-side failure (5xx)."""

    retryable = True

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)


class LLMConnectionError(LLMClientError):
    """Connection failed or timed out before a response arrived."""

    retryable = True


class LLMAuthError(LLMClientError):
    """Authentication failed (401/403)."""


class LLMRequestError(LLMClientError):
    """Request rejected by the API (4xx other than 401/403/429)."""

    def __init__(self, message: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message)


class LLMResponseError(LLMClientError):
    """Response body could not be decoded."""
