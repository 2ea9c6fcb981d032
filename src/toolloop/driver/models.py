"""Driver result models.

Provides RoundResult and DriverResult, the immutable records of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from toolloop.driver.config import DriverState
from toolloop.exceptions import DriverCancelledError
from toolloop.protocols import TokenUsage

if TYPE_CHECKING:
    from toolloop.exceptions import ToolLoopError
    from toolloop.models.conversation import Conversation
    from toolloop.toolkit.models import ToolCallRequest, ToolCallResult


@dataclass(frozen=True)
class RoundResult:
    """Record of one request/response cycle.

    ``tool_calls`` and ``results`` are empty for the final-answer round.
    """

    round: int
    tool_calls: tuple[ToolCallRequest, ...] = ()
    results: tuple[ToolCallResult, ...] = ()
    answer: str | None = None
    usage: TokenUsage | None = None

    @property
    def errors(self) -> list[ToolCallResult]:
        """Results that carry a soft error payload."""
        return [r for r in self.results if r.is_error]


@dataclass(frozen=True)
class DriverResult:
    """Final result of a driver run.

    Attributes:
        state: Terminal state (DONE, FAILED or CANCELLED).
        conversation: The conversation as it stands after the run.
        answer: Final answer text when state is DONE.
        rounds: Number of model requests made.
        round_results: Per-round records in order.
        error: The error that moved the run to FAILED, if any.
        usage: Token usage summed over all responses.
    """

    state: DriverState
    conversation: Conversation
    answer: str | None = None
    rounds: int = 0
    round_results: list[RoundResult] = field(default_factory=list)
    error: ToolLoopError | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def ok(self) -> bool:
        return self.state == DriverState.DONE

    @property
    def tool_results(self) -> list[ToolCallResult]:
        """All tool results across rounds, in order."""
        return [r for rr in self.round_results for r in rr.results]

    def raise_for_error(self) -> None:
        """Raise the failure cause, or DriverCancelledError if cancelled."""
        if self.state == DriverState.FAILED and self.error is not None:
            raise self.error
        if self.state == DriverState.CANCELLED:
            raise DriverCancelledError(f"Run cancelled after {self.rounds} round(s)")
