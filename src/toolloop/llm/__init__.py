"""LLM transport, request building, and response interpretation.

Provides an OpenAI-compatible HTTP transport, the pluggable Transport
protocol, the RequestBuilder and the ResponseInterpreter.
"""

from toolloop.llm.client import OpenAIClient
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
from toolloop.llm.interpreter import FinalAnswer, Interpretation, ResponseInterpreter, ToolCalls
from toolloop.llm.protocols import Transport
from toolloop.llm.request import ChatRequest, RequestBuilder, ToolChoice, ToolChoiceMode

__all__ = [
    "OpenAIClient",
    "Transport",
    "ChatRequest",
    "RequestBuilder",
    "ToolChoice",
    "ToolChoiceMode",
    "ResponseInterpreter",
    "FinalAnswer",
    "ToolCalls",
    "Interpretation",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMServerError",
    "LLMConnectionError",
    "LLMAuthError",
    "LLMRequestError",
    "LLMResponseError",
]
