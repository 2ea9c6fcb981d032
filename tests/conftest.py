"""Shared test fixtures for toolloop.

Provides a weather tool registry, OpenAI-style response builders, and a
scripted transport that replays canned responses.
"""

from __future__ import annotations

import json

import pytest

from toolloop import ToolRegistry

WEATHER_SCHEMA = {
    "type": "object",
    "properties": {
        "location": {
            "type": "string",
            "description": "The city and state, e.g. San Francisco, CA",
        },
        "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
    },
    "required": ["location"],
}


def get_current_weather(location: str, unit: str = "fahrenheit") -> dict:
    """Stub weather lookup."""
    return {
        "location": location,
        "temperature": "72",
        "unit": unit,
        "forecast": ["sunny", "windy"],
    }


# ------------------------------------------------------------------
# Response builders
# ------------------------------------------------------------------


def usage_block(prompt_tokens: int = 10, completion_tokens: int = 5) -> dict:
    return {
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": prompt_tokens + completion_tokens,
    }


def final_response(text: str = "It is 72 and sunny in Boston.", usage: dict | None = None) -> dict:
    """Response with a plain assistant answer."""
    response = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
    }
    if usage is not None:
        response["usage"] = usage
    return response


def tool_call_response(
    calls: list[tuple[str, str | dict, str]],
    text: str | None = None,
    usage: dict | None = None,
) -> dict:
    """Response requesting tool calls.

    Args:
        calls: List of (tool_name, arguments, call_id). String arguments
            are sent verbatim, dicts are JSON-encoded.
    """
    tool_calls = [
        {
            "id": call_id,
            "type": "function",
            "function": {
                "name": name,
                "arguments": args if isinstance(args, str) else json.dumps(args),
            },
        }
        for name, args, call_id in calls
    ]
    response = {
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text, "tool_calls": tool_calls},
                "finish_reason": "tool_calls",
            }
        ]
    }
    if usage is not None:
        response["usage"] = usage
    return response


def weather_call(call_id: str = "call_1", args: str | dict | None = None) -> dict:
    return tool_call_response(
        [("get_current_weather", args if args is not None else {"location": "Boston, MA"}, call_id)]
    )


class ScriptedTransport:
    """Transport that replays canned responses and records requests.

    Entries that are exceptions are raised instead of returned. The last
    entry repeats once the script runs out.
    """

    def __init__(self, script: list) -> None:
        self._script = list(script)
        self.requests: list = []
        self.closed = False

    @property
    def payloads(self) -> list[dict]:
        return [r.to_payload() for r in self.requests]

    def send(self, request) -> dict:
        self.requests.append(request)
        idx = min(len(self.requests) - 1, len(self._script) - 1)
        item = self._script[idx]
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def registry() -> ToolRegistry:
    """Registry with the weather stub registered."""
    reg = ToolRegistry()
    reg.register(
        "get_current_weather",
        WEATHER_SCHEMA,
        get_current_weather,
        description="Get the current weather in a given location",
    )
    return reg
