"""Request building for OpenAI-compatible chat completions.

RequestBuilder turns a conversation snapshot, a model name, and the tool
declarations to expose into a ChatRequest. All limits are checked here,
before anything reaches the transport.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from toolloop.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolloop.models.conversation import Conversation
    from toolloop.protocols import Message, TokenCounter
    from toolloop.toolkit.models import ToolDeclaration

logger = logging.getLogger(__name__)


class ToolChoiceMode(str, enum.Enum):
    """Whether and which tools the model may call in a turn."""

    AUTO = "auto"
    NONE = "none"
    REQUIRED = "required"
    FORCED = "forced"


@dataclass(frozen=True)
class ToolChoice:
    """Tool choice policy for one request.

    Usage::

        ToolChoice.auto()
        ToolChoice.none()
        ToolChoice.force("get_current_weather")
        ToolChoice.parse("auto")
    """

    mode: ToolChoiceMode = ToolChoiceMode.AUTO
    name: str | None = None

    def __post_init__(self) -> None:
        if (self.mode == ToolChoiceMode.FORCED) != (self.name is not None):
            raise InvalidConfigurationError(
                "A tool name is required for forced tool choice, and only for it"
            )

    @classmethod
    def auto(cls) -> ToolChoice:
        return cls(ToolChoiceMode.AUTO)

    @classmethod
    def none(cls) -> ToolChoice:
        return cls(ToolChoiceMode.NONE)

    @classmethod
    def required(cls) -> ToolChoice:
        return cls(ToolChoiceMode.REQUIRED)

    @classmethod
    def force(cls, name: str) -> ToolChoice:
        return cls(ToolChoiceMode.FORCED, name)

    @classmethod
    def parse(cls, value: str | ToolChoice) -> ToolChoice:
        """Accept a ToolChoice or one of "auto", "none", "required"."""
        if isinstance(value, ToolChoice):
            return value
        try:
            mode = ToolChoiceMode(value)
        except ValueError:
            mode = None
        if mode is None or mode == ToolChoiceMode.FORCED:
            raise InvalidConfigurationError(
                f"Unknown tool_choice {value!r}. Use 'auto', 'none', "
                f"'required' or ToolChoice.force(name)."
            )
        return cls(mode)

    def to_openai(self) -> str | dict:
        if self.mode == ToolChoiceMode.FORCED:
            return {"type": "function", "function": {"name": self.name}}
        return self.mode.value


@dataclass(frozen=True)
class ChatRequest:
    """A validated chat request ready for a transport.

    ``tools`` holds the registry's declaration objects themselves.
    """

    model: str
    messages: tuple[Message, ...]
    tools: tuple[ToolDeclaration, ...] = ()
    tool_choice: ToolChoice = field(default_factory=ToolChoice.auto)
    max_tokens: int | None = None
    params: dict[str, Any] = field(default_factory=dict)
    prompt_tokens: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the OpenAI chat completions request body."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.tools:
            payload["tools"] = [t.to_openai() for t in self.tools]
            payload["tool_choice"] = self.tool_choice.to_openai()
        elif self.tool_choice.mode == ToolChoiceMode.NONE:
            payload["tool_choice"] = "none"
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        payload.update(self.params)
        return payload


class RequestBuilder:
    """Builds ChatRequests and enforces pre-transport limits.

    Args:
        token_counter: Used to measure the prompt when a context window is
            given. Without one, prompt size is not checked.
    """

    def __init__(self, token_counter: TokenCounter | None = None) -> None:
        self._token_counter = token_counter

    def build(
        self,
        conversation: Conversation,
        model: str,
        tools: Iterable[ToolDeclaration] = (),
        *,
        tool_choice: str | ToolChoice = "auto",
        max_tokens: int | None = None,
        context_window: int | None = None,
        **params: Any,
    ) -> ChatRequest:
        """Build a request for the current conversation.

        Args:
            conversation: Conversation to snapshot.
            model: Model identifier.
            tools: Declarations to expose. Names must be unique.
            tool_choice: Tool choice policy.
            max_tokens: Completion token limit.
            context_window: Total token limit for prompt plus completion.
            **params: Extra payload fields (temperature, top_p, ...).

        Raises:
            InvalidConfigurationError: On any configuration or limit problem.
        """
        if not model:
            raise InvalidConfigurationError("A model identifier is required")
        if len(conversation) == 0:
            raise InvalidConfigurationError("Cannot build a request from an empty conversation")
        if conversation.pending_tool_call_ids:
            raise InvalidConfigurationError(
                f"Conversation has unanswered tool calls: {conversation.pending_tool_call_ids}"
            )
        for reserved in ("model", "messages", "tools", "tool_choice", "max_tokens"):
            if reserved in params:
                raise InvalidConfigurationError(f"{reserved!r} cannot be passed as an extra param")

        declared = tuple(tools)
        seen: set[str] = set()
        for decl in declared:
            if decl.name in seen:
                raise InvalidConfigurationError(f"Duplicate tool name in request: {decl.name}")
            seen.add(decl.name)

        choice = ToolChoice.parse(tool_choice)
        if choice.mode == ToolChoiceMode.FORCED and choice.name not in seen:
            raise InvalidConfigurationError(
                f"Forced tool {choice.name!r} is not among the declared tools {sorted(seen)}"
            )
        if choice.mode == ToolChoiceMode.REQUIRED and not declared:
            raise InvalidConfigurationError("tool_choice 'required' needs at least one declared tool")

        if max_tokens is not None and max_tokens < 1:
            raise InvalidConfigurationError(f"max_tokens must be positive, got {max_tokens}")
        if context_window is not None and max_tokens is not None and max_tokens >= context_window:
            raise InvalidConfigurationError(
                f"max_tokens ({max_tokens}) leaves no room for the prompt in a "
                f"context window of {context_window}"
            )

        messages = conversation.messages
        prompt_tokens = None
        if context_window is not None and self._token_counter is not None:
            prompt_tokens = self._token_counter.count_messages(
                [m.to_dict() for m in messages]
            ) + self._token_counter.count_tools([d.to_openai() for d in declared])
            budget = prompt_tokens + (max_tokens or 0)
            if budget > context_window:
                raise InvalidConfigurationError(
                    f"Request needs {budget} tokens ({prompt_tokens} prompt + "
                    f"{max_tokens or 0} completion), context window is {context_window}"
                )

        logger.debug(
            "Built request: model=%s messages=%d tools=%d tool_choice=%s",
            model, len(messages), len(declared), choice.to_openai(),
        )
        return ChatRequest(
            model=model,
            messages=messages,
            tools=declared,
            tool_choice=choice,
            max_tokens=max_tokens,
            params=dict(params),
            prompt_tokens=prompt_tokens,
        )
