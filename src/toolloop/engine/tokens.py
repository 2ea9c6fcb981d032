"""Token counting for chat requests.

TiktokenCounter measures what a ChatRequest will cost before it is sent:
the message list (with tool calls and tool results) and the tool
declarations exposed to the model. NullTokenCounter counts nothing and
is meant for tests.
"""

from __future__ import annotations

import json
from typing import Any

# Extra tokens per message for role/content/separators
MESSAGE_OVERHEAD_TOKENS = 3
# Tokens the API adds to prime the assistant reply
RESPONSE_PRIMER_TOKENS = 3
# Extra tokens per declared tool for the function wrapper
TOOL_OVERHEAD_TOKENS = 7


class TiktokenCounter:
    """Token counter backed by a tiktoken encoding.

    The encoding is chosen from the model name, falling back to
    ``o200k_base`` for models tiktoken does not know.
    """

    def __init__(self, model: str = "gpt-4o", encoding_name: str | None = None) -> None:
        import tiktoken

        if encoding_name is not None:
            self._enc = tiktoken.get_encoding(encoding_name)
        else:
            try:
                self._enc = tiktoken.encoding_for_model(model)
            except KeyError:
                self._enc = tiktoken.get_encoding("o200k_base")

    @property
    def encoding_name(self) -> str:
        return self._enc.name

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        return len(self._enc.encode(text))

    def count_messages(self, messages: list[dict]) -> int:
        """Count a wire message list, including per-message overhead.

        String fields are encoded as-is, ``tool_calls`` by their JSON
        rendering. A ``name`` field costs one extra token.
        """
        if not messages:
            return 0
        total = RESPONSE_PRIMER_TOKENS
        for message in messages:
            total += MESSAGE_OVERHEAD_TOKENS
            total += sum(self._count_field(key, value) for key, value in message.items())
        return total

    def count_tools(self, tools: list[dict]) -> int:
        """Count OpenAI-format tool declarations sent with a request."""
        return sum(
            TOOL_OVERHEAD_TOKENS + self.count_text(json.dumps(tool, sort_keys=True))
            for tool in tools
        )

    def _count_field(self, key: str, value: Any) -> int:
        if isinstance(value, str):
            tokens = self.count_text(value)
        elif key == "tool_calls" and value:
            tokens = self.count_text(json.dumps(value))
        else:
            tokens = 0
        if key == "name":
            tokens += 1
        return tokens


class NullTokenCounter:
    """Token counter that always returns 0."""

    def count_text(self, text: str) -> int:
        return 0

    def count_messages(self, messages: list[dict]) -> int:
        return 0

    def count_tools(self, tools: list[dict]) -> int:
        return 0
