"""Conversation driver: the request/response/dispatch loop.

Provides the ConversationDriver class that runs a tool-calling loop:
build a request, send it, interpret the reply, execute requested tool
calls, append their results, and repeat until the model answers without
tools, the round limit is hit, a fatal error occurs, or the run is
cancelled.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import tenacity

from toolloop.driver.config import DriverConfig, DriverState
from toolloop.driver.models import DriverResult, RoundResult
from toolloop.exceptions import (
    FatalToolError,
    InvalidConfigurationError,
    MalformedResponseError,
    ToolLoopError,
    ToolLoopLimitExceededError,
)
from toolloop.llm.errors import LLMClientError
from toolloop.llm.interpreter import FinalAnswer, ResponseInterpreter
from toolloop.llm.request import RequestBuilder, ToolChoice, ToolChoiceMode
from toolloop.models.conversation import Conversation
from toolloop.protocols import Message, TokenUsage
from toolloop.toolkit.dispatcher import ToolDispatcher
from toolloop.toolkit.models import ToolCallResult

if TYPE_CHECKING:
    from toolloop.llm.interpreter import Interpretation, ToolCalls
    from toolloop.llm.protocols import Transport
    from toolloop.protocols import TokenCounter
    from toolloop.toolkit.models import ToolDeclaration
    from toolloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _is_requeryable(exc: BaseException) -> bool:
    """Retryable transport errors and malformed responses may be re-sent."""
    if isinstance(exc, LLMClientError):
        return exc.retryable
    return isinstance(exc, MalformedResponseError)


class ConversationDriver:
    """Drives one conversation through the tool-calling loop.

    One driver owns one conversation at a time. Drivers share nothing but
    the (read-only) registry, so any number may run in parallel.

    Usage::

        from toolloop import ConversationDriver, DriverConfig, OpenAIClient

        with OpenAIClient() as client:
            driver = ConversationDriver(client, registry, DriverConfig(model="gpt-4o-mini"))
            result = driver.run("What's the weather like in Boston?")
            result.raise_for_error()
            print(result.answer)
    """

    def __init__(
        self,
        transport: Transport,
        registry: ToolRegistry,
        config: DriverConfig | None = None,
        *,
        token_counter: TokenCounter | None = None,
        builder: RequestBuilder | None = None,
        interpreter: ResponseInterpreter | None = None,
        dispatcher: ToolDispatcher | None = None,
    ) -> None:
        self._transport = transport
        self._registry = registry
        self._config = config or DriverConfig()
        self._builder = builder or RequestBuilder(token_counter)
        self._interpreter = interpreter or ResponseInterpreter()
        self._dispatcher = dispatcher or ToolDispatcher(
            registry,
            max_concurrency=self._config.max_concurrency,
            validate_arguments=self._config.validate_arguments,
        )
        self._state = DriverState.IDLE
        self._cancel_event = threading.Event()
        self._running = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> DriverState:
        """Return the current driver state."""
        return self._state

    @property
    def config(self) -> DriverConfig:
        return self._config

    def run(self, conversation: Conversation | str) -> DriverResult:
        """Run the loop until a terminal state.

        Args:
            conversation: An existing conversation to continue (appended to
                in place), or a user prompt to start a new one.

        Returns:
            DriverResult in state DONE, FAILED or CANCELLED. Library errors
            are attached to the result instead of being raised.

        Raises:
            InvalidConfigurationError: If the driver is already running.
        """
        if self._running:
            raise InvalidConfigurationError("Driver is already running")
        convo = self._prepare(conversation)
        self._running = True

        rounds = 0
        round_results: list[RoundResult] = []
        usage = TokenUsage()
        answer: str | None = None
        error: ToolLoopError | None = None

        try:
            tools = self._registry.declarations(self._config.tools)

            while True:
                if self._cancel_event.is_set():
                    self._state = DriverState.CANCELLED
                    logger.info("Driver cancelled before round %d", rounds + 1)
                    break

                rounds += 1
                outcome, round_usage = self._query(convo, tools, rounds)
                if round_usage is not None:
                    usage = usage + round_usage

                if isinstance(outcome, FinalAnswer):
                    convo.append(outcome.message)
                    answer = outcome.text
                    self._record(
                        round_results,
                        RoundResult(round=rounds, answer=answer, usage=round_usage),
                    )
                    self._state = DriverState.DONE
                    logger.info("Driver done after %d round(s)", rounds)
                    break

                if rounds > self._config.max_rounds:
                    raise ToolLoopLimitExceededError(self._config.max_rounds, rounds)

                results, fatal = self._dispatch(convo, outcome)
                self._record(
                    round_results,
                    RoundResult(
                        round=rounds,
                        tool_calls=outcome.requests,
                        results=tuple(results),
                        usage=round_usage,
                    ),
                )
                if fatal is not None:
                    raise fatal
        except ToolLoopError as exc:
            self._state = DriverState.FAILED
            error = exc
            logger.warning("Driver failed on round %d: %s", rounds, exc)
        except BaseException:
            self._state = DriverState.FAILED
            raise
        finally:
            self._running = False

        return DriverResult(
            state=self._state,
            conversation=convo,
            answer=answer,
            rounds=rounds,
            round_results=round_results,
            error=error,
            usage=usage,
        )

    def cancel(self) -> None:
        """Ask the driver to stop at the next suspension point.

        Safe to call from another thread. Tool calls already running are
        allowed to finish and their results are kept.
        """
        self._cancel_event.set()

    def reset(self) -> None:
        """Reset the driver for reuse.

        Clears a pending cancellation and returns to IDLE state.
        """
        if self._running:
            raise InvalidConfigurationError("Cannot reset a running driver")
        self._cancel_event.clear()
        self._state = DriverState.IDLE

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _prepare(self, conversation: Conversation | str) -> Conversation:
        if isinstance(conversation, Conversation):
            return conversation
        messages: list[Message] = []
        if self._config.system_prompt:
            messages.append(Message.system(self._config.system_prompt))
        messages.append(Message.user(conversation))
        return Conversation(messages)

    def _tool_choice(self, round_no: int) -> ToolChoice:
        choice = self._config.tool_choice
        if round_no == 1 or choice.mode == ToolChoiceMode.NONE:
            return choice
        return ToolChoice.auto()

    def _query(
        self,
        convo: Conversation,
        tools: list[ToolDeclaration],
        round_no: int,
    ) -> tuple[Interpretation, TokenUsage | None]:
        """Send the conversation and interpret the reply, re-querying if allowed."""
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_requeryable),
            wait=tenacity.wait_exponential(
                multiplier=self._config.requery_backoff,
                max=self._config.requery_backoff * 16,
            ),
            stop=tenacity.stop_after_attempt(self._config.requery_attempts + 1),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._query_once, convo, tools, round_no)

    def _query_once(
        self,
        convo: Conversation,
        tools: list[ToolDeclaration],
        round_no: int,
    ) -> tuple[Interpretation, TokenUsage | None]:
        self._state = DriverState.AWAITING_MODEL
        request = self._builder.build(
            convo,
            self._config.model,
            tools,
            tool_choice=self._tool_choice(round_no),
            max_tokens=self._config.max_tokens,
            context_window=self._config.context_window,
            **self._config.request_params(),
        )
        logger.debug("Round %d: sending %d message(s)", round_no, len(request.messages))
        response = self._transport.send(request)

        self._state = DriverState.INTERPRETING
        outcome = self._interpreter.interpret(response)
        return outcome, self._interpreter.extract_usage(response)

    def _dispatch(
        self, convo: Conversation, outcome: ToolCalls
    ) -> tuple[list[ToolCallResult], FatalToolError | None]:
        """Run the requested tools and append one tool message per call.

        A fatal failure is returned rather than raised, after every call
        has been answered: finished calls keep their results and the rest
        are marked aborted.
        """
        self._state = DriverState.DISPATCHING
        convo.append(outcome.message)
        fatal: FatalToolError | None = None
        try:
            results = self._dispatcher.dispatch(
                outcome.requests, cancel_event=self._cancel_event
            )
        except FatalToolError as exc:
            fatal = exc
            done = {r.tool_call_id: r for r in exc.completed}
            results = [
                done.get(request.id)
                or ToolCallResult.error(request, "aborted", f"Dispatch aborted: {exc}")
                for request in outcome.requests
            ]

        for result in results:
            convo.append(Message.tool_result(result))
        return results, fatal

    def _record(self, round_results: list[RoundResult], result: RoundResult) -> None:
        round_results.append(result)
        if self._config.on_round is not None:
            try:
                self._config.on_round(result)
            except Exception:
                logger.debug("on_round callback error", exc_info=True)
