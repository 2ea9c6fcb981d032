"""Built-in OpenAI-compatible httpx transport with tenacity retry.

OpenAIClient sends ChatRequest payloads to any OpenAI-compatible
/chat/completions endpoint. Credentials come from arguments or env vars.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import httpx
import tenacity

from toolloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMConnectionError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMServerError,
)

if TYPE_CHECKING:
    from toolloop.llm.request import ChatRequest

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"

_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Return True for errors worth another attempt.

    Retryable: 429, 5xx, connection errors and timeouts.
    Everything else, including 401/403 and other 4xx, fails at once.
    """
    return isinstance(exc, LLMClientError) and exc.retryable


def _retry_after(retry_state: tenacity.RetryCallState) -> float:
    """Return the Retry-After hint of the last failure, or 0."""
    outcome = retry_state.outcome
    exc = outcome.exception() if outcome is not None else None
    if isinstance(exc, LLMRateLimitError) and exc.retry_after is not None:
        return exc.retry_after
    return 0.0


class OpenAIClient:
    """Sync httpx transport for OpenAI-compatible chat completions.

    Implements the Transport protocol. Supports retry with exponential
    backoff for transient errors (429, 5xx, connection failures). Fails
    immediately on authentication and other client errors.

    Usage::

        with OpenAIClient(api_key="sk-...") as client:
            response = client.send(request)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff: float = 1.0,
        max_backoff: float = 30.0,
        jitter: float = 2.0,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            api_key: API key. Falls back to TOOLLOOP_OPENAI_API_KEY env var.
            base_url: API base URL. Falls back to TOOLLOOP_OPENAI_BASE_URL env var,
                then to https://api.openai.com/v1.
            timeout: Request timeout in seconds.
            max_retries: Maximum number of attempts for retryable errors.
            backoff: Base delay in seconds for the exponential backoff.
            max_backoff: Upper bound in seconds for the exponential backoff.
            jitter: Upper bound in seconds for random jitter added to each wait.

        Raises:
            LLMConfigError: If neither api_key nor TOOLLOOP_OPENAI_API_KEY is set.
        """
        self._api_key = api_key or os.environ.get("TOOLLOOP_OPENAI_API_KEY", "")
        if not self._api_key:
            raise LLMConfigError(
                "No API key provided. Pass api_key= or set TOOLLOOP_OPENAI_API_KEY "
                "environment variable."
            )
        self._base_url = (
            base_url
            or os.environ.get("TOOLLOOP_OPENAI_BASE_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff
        self._max_backoff = max_backoff
        self._jitter = jitter
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def send(self, request: ChatRequest) -> dict:
        """Send a chat completion request with retry.

        Retries are driven by a per-call tenacity.Retrying, so the attempt
        budget follows this instance's max_retries.

        Returns:
            The decoded response body.

        Raises:
            LLMAuthError: On 401/403 (no retry).
            LLMRateLimitError: On 429 after all retries exhausted.
            LLMServerError: On 5xx after all retries exhausted.
            LLMConnectionError: On connection failure after all retries exhausted.
            LLMRequestError: On other 4xx responses (no retry).
            LLMResponseError: If the body is not a JSON object.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=self._wait,
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._post, request.to_payload())

    def _wait(self, retry_state: tenacity.RetryCallState) -> float:
        """Exponential backoff with jitter, stretched to Retry-After up to max_backoff."""
        backoff = tenacity.wait_exponential(
            multiplier=self._backoff, min=self._backoff, max=self._max_backoff
        ) + tenacity.wait_random(0, self._jitter)
        return max(backoff(retry_state), min(_retry_after(retry_state), self._max_backoff))

    def _post(self, payload: dict[str, Any]) -> dict:
        """POST one payload and map the HTTP outcome to a dict or an LLM error."""
        try:
            response = self._client.post(
                f"{self._base_url}/chat/completions",
                json=payload,
            )
        except (httpx.ConnectError, httpx.TimeoutException, httpx.RemoteProtocolError) as exc:
            raise LLMConnectionError(f"{type(exc).__name__}: {exc}") from exc

        status = response.status_code

        # Check for auth errors before anything else
        if status in _AUTH_ERROR_STATUS_CODES:
            raise LLMAuthError(
                f"Authentication failed: HTTP {status} - {response.text}"
            )

        # Check for rate limiting
        if status == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: float | None = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except (ValueError, TypeError):
                    pass
            raise LLMRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=retry_after,
            )

        if status >= 500:
            raise LLMServerError(f"Server error: HTTP {status} - {response.text}", status)
        if status >= 400:
            raise LLMRequestError(f"Request rejected: HTTP {status} - {response.text}", status)

        try:
            data = response.json()
        except ValueError as exc:
            raise LLMResponseError(f"Response is not valid JSON: {response.text[:200]}") from exc
        if not isinstance(data, dict):
            raise LLMResponseError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def close(self) -> None:
        """Release the pooled HTTP connections."""
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
