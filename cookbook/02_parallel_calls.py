"""Parallel Tool Calls and Soft Errors

Ask about several cities at once. The model requests one call per city
in a single turn; the dispatcher runs them concurrently and answers
every call, including ones whose handler fails.

Demonstrates: max_concurrency, HandlerError, on_round callback,
              RoundResult.errors, ToolChoice.force()
"""

import os
import time

from dotenv import load_dotenv

from toolloop import (
    ConversationDriver,
    DriverConfig,
    HandlerError,
    OpenAIClient,
    RoundResult,
    ToolChoice,
    ToolRegistry,
)

load_dotenv()

TOOLLOOP_OPENAI_API_KEY = os.environ["TOOLLOOP_OPENAI_API_KEY"]
TOOLLOOP_OPENAI_BASE_URL = os.environ.get("TOOLLOOP_OPENAI_BASE_URL")
MODEL_ID = "gpt-4o-mini"

TEMPERATURES = {"boston": 72, "tokyo": 64, "paris": 58}


def get_current_weather(location: str, unit: str = "fahrenheit") -> dict:
    time.sleep(0.5)  # pretend this is a slow HTTP call
    city = location.split(",")[0].strip().lower()
    if city not in TEMPERATURES:
        raise HandlerError(f"No weather station for {location}")
    temp = TEMPERATURES[city]
    if unit == "celsius":
        temp = round((temp - 32) * 5 / 9)
    return {"location": location, "temperature": temp, "unit": unit}


def show_round(rr: RoundResult) -> None:
    if rr.answer is not None:
        print(f"[round {rr.round}] final answer")
        return
    print(f"[round {rr.round}] {len(rr.tool_calls)} call(s), {len(rr.errors)} error(s)")
    for res in rr.results:
        marker = "!" if res.is_error else " "
        print(f"   {marker} {res.tool_call_id}: {res.content}")


def main():
    registry = ToolRegistry()
    registry.register(
        "get_current_weather",
        {
            "type": "object",
            "properties": {
                "location": {"type": "string"},
                "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
            },
            "required": ["location"],
        },
        get_current_weather,
        description="Get the current weather in a given location",
    )

    config = DriverConfig(
        model=MODEL_ID,
        max_concurrency=4,
        tool_choice=ToolChoice.force("get_current_weather"),
        on_round=show_round,
    )

    with OpenAIClient(api_key=TOOLLOOP_OPENAI_API_KEY, base_url=TOOLLOOP_OPENAI_BASE_URL) as client:
        driver = ConversationDriver(client, registry, config)
        start = time.perf_counter()
        result = driver.run("Compare the weather in Boston, Tokyo, Paris and Atlantis, in celsius.")
        elapsed = time.perf_counter() - start

    result.raise_for_error()
    print()
    print(result.answer)
    print(f"\n({result.rounds} rounds in {elapsed:.1f}s)")


if __name__ == "__main__":
    main()
