"""Driver configuration types.

Provides DriverState and DriverConfig for the conversation driver.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from toolloop.exceptions import InvalidConfigurationError
from toolloop.llm.request import ToolChoice

if TYPE_CHECKING:
    from toolloop.driver.models import RoundResult


class DriverState(str, enum.Enum):
    """States the driver moves through during a run.

    ``DONE``, ``FAILED`` and ``CANCELLED`` are terminal.
    """

    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    INTERPRETING = "interpreting"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (DriverState.DONE, DriverState.FAILED, DriverState.CANCELLED)


@dataclass
class DriverConfig:
    """Configuration for the conversation driver.

    Mutable dataclass -- users may adjust settings between runs.

    Attributes:
        model: Model identifier sent with every request.
        max_rounds: Maximum number of rounds that may end in tool calls.
            The model gets one more round to answer; if it asks for tools
            again the run fails with ToolLoopLimitExceededError.
        max_concurrency: Upper bound on tool calls executed in parallel.
        tool_choice: Policy for the first round. Later rounds use "auto"
            so a forced tool is not requested forever, except "none"
            which stays in force.
        tools: Names of registry tools to expose. None exposes all.
        max_tokens: Completion token limit per request.
        temperature: Sampling temperature, or None for the provider default.
        context_window: Total token limit checked before each request.
        system_prompt: Prepended when run() starts from a plain prompt.
        requery_attempts: Extra attempts for a round after a retryable
            transport error or a malformed response.
        requery_backoff: Base delay in seconds for requery backoff.
        validate_arguments: Check parsed arguments against tool schemas.
        extra_params: Additional payload fields (top_p, seed, ...).
        on_round: Callback invoked after each completed round.
    """

    model: str = "gpt-4o-mini"
    max_rounds: int = 8
    max_concurrency: int = 4
    tool_choice: str | ToolChoice = "auto"
    tools: list[str] | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    context_window: int | None = None
    system_prompt: str | None = None
    requery_attempts: int = 0
    requery_backoff: float = 0.5
    validate_arguments: bool = True
    extra_params: dict[str, Any] = field(default_factory=dict)
    on_round: Callable[[RoundResult], None] | None = None

    def __post_init__(self) -> None:
        if self.max_rounds < 1:
            raise InvalidConfigurationError(f"max_rounds must be >= 1, got {self.max_rounds}")
        if self.max_concurrency < 1:
            raise InvalidConfigurationError(
                f"max_concurrency must be >= 1, got {self.max_concurrency}"
            )
        if self.requery_attempts < 0:
            raise InvalidConfigurationError(
                f"requery_attempts must be >= 0, got {self.requery_attempts}"
            )
        if self.requery_backoff < 0:
            raise InvalidConfigurationError(
                f"requery_backoff must be >= 0, got {self.requery_backoff}"
            )
        self.tool_choice = ToolChoice.parse(self.tool_choice)

    def request_params(self) -> dict[str, Any]:
        """Payload fields beyond model, messages, tools, and max_tokens."""
        params = dict(self.extra_params)
        if self.temperature is not None:
            params["temperature"] = self.temperature
        return params
