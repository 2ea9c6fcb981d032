"""Append-only conversation aggregate.

The Conversation is the single mutable object a driver owns. It enforces
tool-call pairing: every tool message must answer an id requested by the
immediately preceding assistant message, exactly once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from toolloop.exceptions import ProtocolViolationError
from toolloop.protocols import Message

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class Conversation:
    """Ordered, append-only sequence of Messages.

    Usage::

        convo = Conversation([Message.user("What's the weather like in Boston?")])
        convo.append(Message.assistant(tool_calls=[call]))
        convo.append(Message.tool_result(result))
    """

    def __init__(self, messages: Iterable[Message] | None = None) -> None:
        self._messages: list[Message] = []
        # Ids requested by the last assistant message, not yet answered
        self._pending: dict[str, None] = {}
        # All ids requested by the last assistant message
        self._open_turn: frozenset[str] = frozenset()
        if messages is not None:
            self.extend(messages)

    @property
    def messages(self) -> tuple[Message, ...]:
        """Immutable snapshot of the messages so far."""
        return tuple(self._messages)

    @property
    def pending_tool_call_ids(self) -> list[str]:
        """Ids requested by the last assistant message that lack a result."""
        return list(self._pending)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def append(self, message: Message) -> None:
        """Append one message.

        Raises:
            ProtocolViolationError: If a tool message does not answer a
                pending id, answers one twice, or a non-tool message is
                appended while tool calls are still unanswered.
        """
        if message.role == "tool":
            call_id = message.tool_call_id
            if call_id not in self._open_turn:
                raise ProtocolViolationError(
                    f"Tool result {call_id!r} does not match any tool call "
                    f"of the preceding assistant message"
                )
            if call_id not in self._pending:
                raise ProtocolViolationError(f"Duplicate tool result for {call_id!r}")
            del self._pending[call_id]
        else:
            if self._pending:
                raise ProtocolViolationError(
                    f"Cannot append {message.role} message: tool calls "
                    f"{list(self._pending)} are still unanswered"
                )
            if message.role == "assistant" and message.tool_calls:
                ids = [tc.id for tc in message.tool_calls]
                if len(set(ids)) != len(ids):
                    raise ProtocolViolationError(f"Duplicate tool call ids in {ids}")
                self._pending = dict.fromkeys(ids)
                self._open_turn = frozenset(ids)
            else:
                self._open_turn = frozenset()

        self._messages.append(message)

    def extend(self, messages: Iterable[Message]) -> None:
        for message in messages:
            self.append(message)

    def to_wire(self) -> list[dict]:
        """Render all messages as OpenAI chat message dicts."""
        return [m.to_dict() for m in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __repr__(self) -> str:
        return f"Conversation(messages={len(self._messages)}, pending={len(self._pending)})"
