"""Response interpretation.

Turns a raw provider response into either a FinalAnswer or a ToolCalls
value. The response shape is validated with pydantic; anything that does
not fit raises MalformedResponseError.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolloop.exceptions import MalformedResponseError
from toolloop.protocols import Message, TokenUsage
from toolloop.toolkit.models import ToolCallRequest

logger = logging.getLogger(__name__)


class _WireFunction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    arguments: Union[str, dict, None] = None


class _WireToolCall(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str = "function"
    function: _WireFunction


class _WireMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str
    content: Optional[str] = None
    tool_calls: Optional[list[_WireToolCall]] = None


class _WireChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: _WireMessage
    finish_reason: Optional[str] = None


class _WireUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class _WireResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[_WireChoice] = Field(min_length=1)
    usage: Optional[_WireUsage] = None


@dataclass(frozen=True)
class FinalAnswer:
    """The model answered without requesting tools."""

    text: str
    message: Message
    finish_reason: str | None = None


@dataclass(frozen=True)
class ToolCalls:
    """The model requested one or more tool calls, in order."""

    requests: tuple[ToolCallRequest, ...]
    message: Message
    finish_reason: str | None = None


Interpretation = Union[FinalAnswer, ToolCalls]


class ResponseInterpreter:
    """Parses OpenAI-style chat completion responses.

    Usage::

        outcome = ResponseInterpreter().interpret(response)
        if isinstance(outcome, ToolCalls):
            results = dispatcher.dispatch(outcome.requests)
        else:
            print(outcome.text)
    """

    def interpret(self, response: Any) -> Interpretation:
        """Interpret the first choice of *response*.

        Raises:
            MalformedResponseError: If the response shape is unexpected,
                the message role is not "assistant", or tool-call ids repeat.
        """
        parsed = self._validate(response)
        choice = parsed.choices[0]
        wire = choice.message

        if wire.role != "assistant":
            raise MalformedResponseError(
                f"Expected an assistant message, got role {wire.role!r}"
            )

        if not wire.tool_calls:
            message = Message.assistant(content=wire.content)
            logger.debug("Interpreted final answer (finish_reason=%s)", choice.finish_reason)
            return FinalAnswer(
                text=wire.content or "",
                message=message,
                finish_reason=choice.finish_reason,
            )

        requests: list[ToolCallRequest] = []
        seen: set[str] = set()
        for raw in wire.tool_calls:
            call_id = raw.id or f"call_{uuid.uuid4().hex[:8]}"
            if call_id in seen:
                raise MalformedResponseError(f"Duplicate tool call id in response: {call_id}")
            seen.add(call_id)
            requests.append(
                ToolCallRequest(
                    id=call_id,
                    name=raw.function.name,
                    arguments=_raw_arguments(raw.function.arguments),
                    type=raw.type,
                )
            )

        logger.debug(
            "Interpreted %d tool call(s): %s",
            len(requests), ", ".join(r.name for r in requests),
        )
        return ToolCalls(
            requests=tuple(requests),
            message=Message.assistant(content=wire.content, tool_calls=requests),
            finish_reason=choice.finish_reason,
        )

    def extract_usage(self, response: Any) -> TokenUsage | None:
        """Extract token usage from a response, or None if absent."""
        if not isinstance(response, dict):
            return None
        usage = response.get("usage")
        if not isinstance(usage, dict):
            return None
        try:
            wire = _WireUsage.model_validate(usage)
        except ValidationError:
            logger.debug("Ignoring unparseable usage block: %s", usage)
            return None
        return TokenUsage(
            prompt_tokens=wire.prompt_tokens,
            completion_tokens=wire.completion_tokens,
            total_tokens=wire.total_tokens,
        )

    @staticmethod
    def _validate(response: Any) -> _WireResponse:
        if not isinstance(response, dict):
            raise MalformedResponseError(
                f"Expected a response dict, got {type(response).__name__}"
            )
        try:
            return _WireResponse.model_validate(response)
        except ValidationError as exc:
            raise MalformedResponseError(f"Unexpected response format: {exc}") from exc


def _raw_arguments(arguments: str | dict | None) -> str:
    # Some providers send parsed objects; keep the wire form as text
    if arguments is None:
        return "{}"
    if isinstance(arguments, dict):
        return json.dumps(arguments)
    return arguments
