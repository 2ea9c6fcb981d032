"""Transport protocol.

Defines the pluggable interface the driver uses to reach a model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from toolloop.llm.request import ChatRequest


@runtime_checkable
class Transport(Protocol):
    """Protocol for pluggable chat transports.

    Any object with send() and close() methods matching this signature
    works. The built-in OpenAIClient implements this protocol.

    ``send`` raises an LLMClientError subclass on failure; its
    ``retryable`` flag tells the driver whether re-sending may help.
    """

    def send(self, request: ChatRequest) -> dict:
        """Send a request, return the raw response dict."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
