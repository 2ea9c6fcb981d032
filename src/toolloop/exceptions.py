"""toolloop exception hierarchy.

All toolloop-specific exceptions inherit from ToolLoopError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolloop.toolkit.models import ToolCallRequest, ToolCallResult


class ToolLoopError(Exception):
    """Base exception for all toolloop errors."""


class InvalidConfigurationError(ToolLoopError):
    """Raised when a request or driver is configured incorrectly.

    Caller error; never retried.
    """


class MalformedResponseError(ToolLoopError):
    """Raised when a provider response does not have the expected shape."""


class ProtocolViolationError(ToolLoopError):
    """Raised when a conversation would break tool-call pairing rules."""


class DuplicateToolError(ToolLoopError):
    """Raised when registering a tool name that already exists."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool already registered: {name}")


class UnknownToolError(ToolLoopError):
    """Raised when a tool name lookup fails."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ArgumentParseError(ToolLoopError):
    """Raised when a tool-call argument payload is not a JSON object.

    Soft: the dispatcher turns it into a tool result instead of failing.
    """

    def __init__(self, name: str, raw: str, reason: str) -> None:
        self.name = name
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid arguments for {name}: {reason}")


class HandlerError(ToolLoopError):
    """Raised by tool handlers to report a typed failure.

    Non-fatal errors are reported back to the model. Set ``fatal=True``
    to abort the whole dispatch phase.
    """

    def __init__(self, message: str, *, fatal: bool = False) -> None:
        self.fatal = fatal
        super().__init__(message)


class FatalToolError(ToolLoopError):
    """Raised when a tool call fails fatally and dispatch is aborted.

    Attributes:
        request: The tool call that failed.
        completed: Results of calls that finished before the abort.
    """

    def __init__(
        self,
        request: ToolCallRequest,
        cause: BaseException,
        completed: list[ToolCallResult] | None = None,
    ) -> None:
        self.request = request
        self.completed = list(completed or [])
        super().__init__(
            f"Tool {request.name} ({request.id}) failed fatally: "
            f"{type(cause).__name__}: {cause}"
        )


class ToolLoopLimitExceededError(ToolLoopError):
    """Raised when the model keeps requesting tools past the round limit."""

    def __init__(self, limit: int, rounds: int) -> None:
        self.limit = limit
        self.rounds = rounds
        super().__init__(
            f"Tool loop limit exceeded: model requested tools on round "
            f"{rounds} (max_rounds: {limit})"
        )


class DriverCancelledError(ToolLoopError):
    """Raised by DriverResult.raise_for_error() for a cancelled run."""
