"""Property-based tests for id round-tripping and result pairing."""

from __future__ import annotations

import json

from hypothesis import given, settings
from hypothesis import strategies as st

from tests.conftest import ScriptedTransport, final_response, tool_call_response
from tests.strategies import argument_objects, tool_call_batches, tool_names
from toolloop import (
    Conversation,
    ConversationDriver,
    DriverConfig,
    Message,
    RequestBuilder,
    ResponseInterpreter,
    ToolDispatcher,
    ToolRegistry,
)


def _echo_registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.register("echo", {"type": "object"}, lambda **kwargs: kwargs)
    reg.register("count", {"type": "object"}, lambda **kwargs: len(kwargs))
    return reg


@given(batch=tool_call_batches())
def test_interpreter_preserves_ids_and_arguments(batch):
    outcome = ResponseInterpreter().interpret(tool_call_response(batch))
    assert [(r.name, r.arguments, r.id) for r in outcome.requests] == batch


@given(batch=tool_call_batches(names=["echo", "count", "missing"]))
@settings(max_examples=50, deadline=None)
def test_dispatch_returns_one_result_per_request_in_order(batch):
    requests = ResponseInterpreter().interpret(tool_call_response(batch)).requests
    results = ToolDispatcher(_echo_registry(), max_concurrency=3).dispatch(requests)
    assert [r.tool_call_id for r in results] == [call_id for _, _, call_id in batch]
    assert [r.name for r in results] == [name for name, _, _ in batch]


@given(batch=tool_call_batches(names=["echo", "count"]))
@settings(max_examples=30, deadline=None)
def test_driver_answers_every_call_bit_for_bit(batch):
    transport = ScriptedTransport([tool_call_response(batch), final_response()])
    result = ConversationDriver(transport, _echo_registry()).run("go")

    assert result.ok
    tool_ids = [m.tool_call_id for m in result.conversation if m.role == "tool"]
    assert tool_ids == [call_id for _, _, call_id in batch]
    second = transport.payloads[1]["messages"]
    assert [m["tool_call_id"] for m in second if m["role"] == "tool"] == tool_ids


@given(names=st.lists(tool_names, min_size=1, max_size=8, unique=True))
def test_every_declared_tool_sent_exactly_once(names):
    reg = ToolRegistry()
    for name in names:
        reg.register(name, {"type": "object"}, lambda: None)
    convo = Conversation([Message.user("hi")])
    payload = RequestBuilder().build(convo, "gpt-4o-mini", reg.declarations()).to_payload()
    assert [t["function"]["name"] for t in payload["tools"]] == names


@given(arguments=argument_objects)
def test_echo_handler_receives_parsed_arguments(arguments):
    batch = [("echo", json.dumps(arguments), "call_1")]
    requests = ResponseInterpreter().interpret(tool_call_response(batch)).requests
    [result] = ToolDispatcher(_echo_registry()).dispatch(requests)
    assert not result.is_error
    assert result.payload == arguments
