"""ToolDispatcher: executes model-requested tool calls against a registry.

Provides a single ``dispatch()`` method that parses each call's raw
arguments, invokes the registered handler, and returns one
``ToolCallResult`` per request, in request order.

Failures stay local to the call that caused them and are turned into
structured error payloads the model can read on its next turn. Only
fatal handler failures abort the phase.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from toolloop.exceptions import (
    ArgumentParseError,
    FatalToolError,
    HandlerError,
    UnknownToolError,
)
from toolloop.toolkit.models import ToolCallResult
from toolloop.toolkit.schema import check_arguments

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence
    from concurrent.futures import Future

    from toolloop.toolkit.models import ToolCallRequest
    from toolloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Longest slice of unparseable argument text echoed back to the model
RAW_ARGUMENTS_ECHO_LIMIT = 500


class _Fatal(Exception):
    """Internal carrier for a fatal failure raised inside a worker."""

    def __init__(self, request: ToolCallRequest, cause: BaseException) -> None:
        self.request = request
        self.cause = cause
        super().__init__(str(cause))


def is_fatal(exc: BaseException) -> bool:
    """Return True if a handler failure must abort the dispatch phase."""
    if isinstance(exc, HandlerError):
        return exc.fatal
    return isinstance(exc, MemoryError)


def parse_arguments(request: ToolCallRequest) -> dict:
    """Parse a request's raw argument text into a dict.

    Empty text is treated as no arguments.

    Raises:
        ArgumentParseError: If the text is not JSON or not a JSON object.
            Input that is too deeply nested or holds integers beyond the
            interpreter's digit limit counts as not JSON.
    """
    raw = request.arguments
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError, TypeError) as exc:
        raise ArgumentParseError(
            request.name, raw, f"not valid JSON ({type(exc).__name__}: {exc})"
        ) from exc
    if not isinstance(parsed, dict):
        raise ArgumentParseError(
            request.name, raw, f"expected a JSON object, got {type(parsed).__name__}"
        )
    return parsed


class ToolDispatcher:
    """Dispatches tool calls and returns structured results.

    Independent calls in one turn run concurrently on a thread pool
    bounded by ``max_concurrency``.

    Usage::

        dispatcher = ToolDispatcher(registry, max_concurrency=4)
        results = dispatcher.dispatch(outcome.requests)
        for r in results:
            print(r.tool_call_id, r.content)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        max_concurrency: int = 4,
        validate_arguments: bool = True,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._registry = registry
        self._max_concurrency = max_concurrency
        self._validate_arguments = validate_arguments

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def dispatch(
        self,
        requests: Sequence[ToolCallRequest],
        *,
        cancel_event: threading.Event | None = None,
    ) -> list[ToolCallResult]:
        """Execute every request and return results in request order.

        Args:
            requests: Tool calls from one model turn.
            cancel_event: When set, calls that have not started yet are
                answered with a ``cancelled`` error instead of running.

        Returns:
            One ToolCallResult per request, each carrying its request id.

        Raises:
            FatalToolError: If a handler fails fatally. Calls already
                running are allowed to finish first.
        """
        if not requests:
            return []

        if len(requests) == 1 or self._max_concurrency == 1:
            results: list[ToolCallResult] = []
            for request in requests:
                try:
                    results.append(self._guarded(request, cancel_event))
                except _Fatal as fatal:
                    raise FatalToolError(fatal.request, fatal.cause, results) from fatal.cause
            return results

        workers = min(self._max_concurrency, len(requests))
        futures: list[Future[ToolCallResult]] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="toolloop-dispatch") as pool:
            for request in requests:
                futures.append(pool.submit(self._guarded, request, cancel_event))

            fatal: _Fatal | None = None
            for future in futures:
                try:
                    future.result()
                except _Fatal as exc:
                    fatal = exc
                    # Drop queued calls; running ones finish on pool exit
                    for other in futures:
                        other.cancel()
                    break

        if fatal is not None:
            completed = [
                f.result() for f in futures
                if f.done() and not f.cancelled() and f.exception() is None
            ]
            raise FatalToolError(fatal.request, fatal.cause, completed) from fatal.cause

        return [f.result() for f in futures]

    def dispatch_one(self, request: ToolCallRequest) -> ToolCallResult:
        """Execute a single request inline.

        Raises:
            FatalToolError: If the handler fails fatally.
        """
        return self.dispatch([request])[0]

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _guarded(
        self,
        request: ToolCallRequest,
        cancel_event: threading.Event | None,
    ) -> ToolCallResult:
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("Skipping tool %s (%s): cancelled", request.name, request.id)
            return ToolCallResult.error(request, "cancelled", "Tool call cancelled before execution")
        return self._execute(request)

    def _execute(self, request: ToolCallRequest) -> ToolCallResult:
        try:
            tool = self._registry.lookup(request.name)
        except UnknownToolError as exc:
            logger.warning("Model requested unknown tool %s", request.name)
            return ToolCallResult.error(
                request, "unknown_tool", str(exc), available=self._registry.names()
            )

        try:
            arguments = parse_arguments(request)
        except ArgumentParseError as exc:
            logger.warning("Malformed arguments for %s (%s): %s", request.name, request.id, exc.reason)
            return ToolCallResult.error(
                request, "argument_parse_error", str(exc), raw=exc.raw[:RAW_ARGUMENTS_ECHO_LIMIT]
            )

        if self._validate_arguments:
            problems = check_arguments(tool.schema, arguments)
            if problems:
                logger.warning("Invalid arguments for %s (%s): %s", request.name, request.id, problems)
                return ToolCallResult.error(
                    request, "argument_validation_error", "; ".join(problems)
                )

        try:
            output = tool.handler(**arguments)
        except Exception as exc:
            if is_fatal(exc):
                logger.error("Tool %s (%s) failed fatally: %s", request.name, request.id, exc)
                raise _Fatal(request, exc) from exc
            logger.debug("Tool %s failed: %s", request.name, exc, exc_info=True)
            return ToolCallResult.error(request, "handler_error", f"{type(exc).__name__}: {exc}")

        try:
            json.dumps(output)
        except (TypeError, ValueError) as exc:
            return ToolCallResult.error(
                request, "handler_error", f"Result is not JSON-serializable: {exc}"
            )

        logger.debug("Tool %s (%s) succeeded", request.name, request.id)
        return ToolCallResult(tool_call_id=request.id, name=request.name, payload=output)
