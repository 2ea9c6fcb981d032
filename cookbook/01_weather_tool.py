"""Weather Tool Round Trip

Register one tool, ask a question that needs it, and let the driver run
the request / tool-call / tool-result loop until the model answers.

Demonstrates: ToolRegistry.register(), OpenAIClient, DriverConfig,
              ConversationDriver.run(), DriverResult.round_results
"""

import logging
import os

from dotenv import load_dotenv

from toolloop import ConversationDriver, DriverConfig, OpenAIClient, ToolRegistry

load_dotenv()

TOOLLOOP_OPENAI_API_KEY = os.environ["TOOLLOOP_OPENAI_API_KEY"]
TOOLLOOP_OPENAI_BASE_URL = os.environ.get("TOOLLOOP_OPENAI_BASE_URL")
MODEL_ID = "gpt-4o-mini"


def get_current_weather(location: str, unit: str = "fahrenheit") -> dict:
    # Canned data; swap in a real weather API here
    return {
        "location": location,
        "temperature": "72",
        "unit": unit,
        "forecast": ["sunny", "windy"],
    }


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    registry = ToolRegistry()
    registry.register(
        "get_current_weather",
        {
            "type": "object",
            "properties": {
                "location": {
                    "type": "string",
                    "description": "The city and state, e.g. San Francisco, CA",
                },
                "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
            },
            "required": ["location"],
        },
        get_current_weather,
        description="Get the current weather in a given location",
    )

    config = DriverConfig(model=MODEL_ID, max_rounds=4, temperature=0.0)

    with OpenAIClient(api_key=TOOLLOOP_OPENAI_API_KEY, base_url=TOOLLOOP_OPENAI_BASE_URL) as client:
        driver = ConversationDriver(client, registry, config)
        result = driver.run("What's the weather like in Boston?")

    print("=" * 60)
    print(f"State:  {result.state.value}")
    print(f"Rounds: {result.rounds}")
    print(f"Tokens: {result.usage.total_tokens}")
    print("=" * 60)

    for rr in result.round_results:
        for call, res in zip(rr.tool_calls, rr.results):
            print(f"  round {rr.round}: {call.name}({call.arguments}) -> {res.content}")

    result.raise_for_error()
    print()
    print(result.answer)


if __name__ == "__main__":
    main()
