"""Tests for ToolChoice, ChatRequest and RequestBuilder."""

from __future__ import annotations

import pytest

from toolloop import (
    Conversation,
    InvalidConfigurationError,
    Message,
    RequestBuilder,
    ToolCallRequest,
    ToolChoice,
    ToolRegistry,
)
from toolloop.engine import NullTokenCounter
from toolloop.llm import ToolChoiceMode


class FixedTokenCounter:
    """Counts every message and every text as a fixed number of tokens."""

    def __init__(self, per_item: int = 10) -> None:
        self.per_item = per_item

    def count_text(self, text: str) -> int:
        return self.per_item

    def count_messages(self, messages: list[dict]) -> int:
        return self.per_item * len(messages)

    def count_tools(self, tools: list[dict]) -> int:
        return self.per_item * len(tools)


@pytest.fixture
def convo() -> Conversation:
    return Conversation([Message.user("What's the weather like in Boston?")])


@pytest.fixture
def tools(registry):
    return registry.declarations()


class TestToolChoice:
    def test_parse_strings(self):
        assert ToolChoice.parse("auto") == ToolChoice.auto()
        assert ToolChoice.parse("none").mode == ToolChoiceMode.NONE
        assert ToolChoice.parse("required").mode == ToolChoiceMode.REQUIRED

    def test_parse_passes_through_instances(self):
        forced = ToolChoice.force("get_current_weather")
        assert ToolChoice.parse(forced) is forced

    @pytest.mark.parametrize("value", ["forced", "always", ""])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(InvalidConfigurationError):
            ToolChoice.parse(value)

    def test_forced_requires_name(self):
        with pytest.raises(InvalidConfigurationError):
            ToolChoice(ToolChoiceMode.FORCED)

    def test_name_only_for_forced(self):
        with pytest.raises(InvalidConfigurationError):
            ToolChoice(ToolChoiceMode.AUTO, "get_current_weather")

    def test_to_openai(self):
        assert ToolChoice.auto().to_openai() == "auto"
        assert ToolChoice.none().to_openai() == "none"
        assert ToolChoice.force("x").to_openai() == {"type": "function", "function": {"name": "x"}}


class TestBuild:
    def test_payload_shape(self, convo, tools):
        request = RequestBuilder().build(convo, "gpt-4o-mini", tools)
        payload = request.to_payload()
        assert payload["model"] == "gpt-4o-mini"
        assert payload["messages"] == [
            {"role": "user", "content": "What's the weather like in Boston?"}
        ]
        assert payload["tool_choice"] == "auto"
        assert payload["tools"][0]["type"] == "function"
        assert payload["tools"][0]["function"]["name"] == "get_current_weather"
        assert payload["tools"][0]["function"]["description"] == (
            "Get the current weather in a given location"
        )

    def test_tools_are_registry_declarations(self, convo, registry):
        request = RequestBuilder().build(convo, "gpt-4o-mini", registry.declarations())
        assert request.tools[0] is registry.lookup("get_current_weather").declaration

    def test_no_tools_omits_tool_fields(self, convo):
        payload = RequestBuilder().build(convo, "gpt-4o-mini").to_payload()
        assert "tools" not in payload
        assert "tool_choice" not in payload

    def test_none_without_tools_still_sent(self, convo):
        payload = RequestBuilder().build(convo, "gpt-4o-mini", tool_choice="none").to_payload()
        assert payload["tool_choice"] == "none"

    def test_forced_tool(self, convo, tools):
        request = RequestBuilder().build(
            convo, "gpt-4o-mini", tools, tool_choice=ToolChoice.force("get_current_weather")
        )
        assert request.to_payload()["tool_choice"] == {
            "type": "function",
            "function": {"name": "get_current_weather"},
        }

    def test_max_tokens_and_params(self, convo):
        payload = RequestBuilder().build(
            convo, "gpt-4o-mini", max_tokens=256, temperature=0.2
        ).to_payload()
        assert payload["max_tokens"] == 256
        assert payload["temperature"] == 0.2

    def test_messages_are_a_snapshot(self, convo):
        request = RequestBuilder().build(convo, "gpt-4o-mini")
        convo.append(Message.assistant("Sunny."))
        assert len(request.messages) == 1


class TestBuildErrors:
    def test_forced_tool_not_declared(self, convo, tools):
        with pytest.raises(InvalidConfigurationError, match="launch_rockets"):
            RequestBuilder().build(
                convo, "gpt-4o-mini", tools, tool_choice=ToolChoice.force("launch_rockets")
            )

    def test_forced_tool_with_no_tools(self, convo):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(
                convo, "gpt-4o-mini", tool_choice=ToolChoice.force("get_current_weather")
            )

    def test_required_with_no_tools(self, convo):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(convo, "gpt-4o-mini", tool_choice="required")

    def test_duplicate_tool_names(self, convo):
        a = ToolRegistry()
        b = ToolRegistry()
        a.register("dup", {"type": "object"}, lambda: None)
        b.register("dup", {"type": "object"}, lambda: None)
        with pytest.raises(InvalidConfigurationError, match="dup"):
            RequestBuilder().build(convo, "gpt-4o-mini", a.declarations() + b.declarations())

    def test_empty_model(self, convo):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(convo, "")

    def test_empty_conversation(self):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(Conversation(), "gpt-4o-mini")

    def test_unanswered_tool_calls(self, convo):
        convo.append(Message.assistant(tool_calls=[ToolCallRequest(id="call_1", name="x")]))
        with pytest.raises(InvalidConfigurationError, match="unanswered"):
            RequestBuilder().build(convo, "gpt-4o-mini")

    def test_reserved_param(self, convo):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(convo, "gpt-4o-mini", messages=[])

    @pytest.mark.parametrize("max_tokens", [0, -5])
    def test_non_positive_max_tokens(self, convo, max_tokens):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(convo, "gpt-4o-mini", max_tokens=max_tokens)

    def test_max_tokens_fills_context_window(self, convo):
        with pytest.raises(InvalidConfigurationError):
            RequestBuilder().build(convo, "gpt-4o-mini", max_tokens=100, context_window=100)


class TestTokenBudget:
    def test_within_budget(self, convo, tools):
        request = RequestBuilder(FixedTokenCounter(10)).build(
            convo, "gpt-4o-mini", tools, max_tokens=50, context_window=100
        )
        # one message plus one tool declaration
        assert request.prompt_tokens == 20

    def test_over_budget(self, convo, tools):
        with pytest.raises(InvalidConfigurationError, match="context window"):
            RequestBuilder(FixedTokenCounter(10)).build(
                convo, "gpt-4o-mini", tools, max_tokens=90, context_window=100
            )

    def test_no_counter_skips_check(self, convo, tools):
        request = RequestBuilder().build(
            convo, "gpt-4o-mini", tools, max_tokens=90, context_window=100
        )
        assert request.prompt_tokens is None

    def test_null_counter(self, convo):
        request = RequestBuilder(NullTokenCounter()).build(
            convo, "gpt-4o-mini", context_window=10
        )
        assert request.prompt_tokens == 0
