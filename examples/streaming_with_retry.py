"""
Example: Resilient Streaming with Tool Calls

This example opens an OpenAI chat completion stream under a retry policy,
reconstructs text and tool calls from the deltas, and prints usage.

Requires OPENAI_API_KEY in the environment or a .env file.
"""

import asyncio
import logging

from dotenv import load_dotenv
from openai import AsyncOpenAI

from resilient_llm import (
    CancellationToken,
    RetryContext,
    RetryEvents,
    RetryPolicy,
    StreamAdapter,
    StreamingHelper,
)

load_dotenv()

WEATHER_TOOL = {
    "type": "function",
    "function": {
        "name": "get_weather",
        "description": "Get the current weather for a location",
        "parameters": {
            "type": "object",
            "properties": {"location": {"type": "string"}},
            "required": ["location"],
        },
    },
}


async def example_stream_with_tools():
    """Stream a response that calls a tool."""
    print("=== Streaming with Tool Calls ===\n")

    client = AsyncOpenAI()
    model = "gpt-4o-mini"

    async def open_stream(attempt_token):
        return await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": "What's the weather in San Francisco?"}],
            tools=[WEATHER_TOOL],
            stream=True,
            stream_options={"include_usage": True},
        )

    events = RetryEvents(
        on_retry=lambda attempt, error, delay, ctx: print(f"Retry {attempt + 1} in {delay}ms: {error}"),
    )

    chunks = StreamingHelper.stream_with_retry(
        open_stream,
        RetryContext(operation="chat", provider="openai", model=model),
        policy=RetryPolicy(max_retries=2, timeout_ms=30000),
        events=events,
        adapter=StreamAdapter("openai", model),
    )
    result = await StreamingHelper.collect(chunks)

    print(f"Text: {result.content!r}")
    print(f"Finish reason: {result.finish_reason}")
    for call in result.tool_calls or []:
        print(f"Tool call {call.name}({call.arguments})")
    if result.usage:
        print(f"Usage: {result.usage.to_dict()}")


async def example_cancellation():
    """Cancel a stream from another task."""
    print("\n=== Cancellation ===\n")

    client = AsyncOpenAI()
    token = CancellationToken()

    async def open_stream(attempt_token):
        return await client.chat.completions.create(
            model="gpt-4o-mini",
            messages=[{"role": "user", "content": "Count slowly from 1 to 100"}],
            stream=True,
        )

    asyncio.get_running_loop().call_later(1.0, token.cancel, "user stopped")

    try:
        async for chunk in StreamingHelper.stream_with_retry(
            open_stream,
            RetryContext(operation="chat", provider="openai"),
            cancel_token=token,
            adapter=StreamAdapter("openai"),
        ):
            if chunk.content:
                print(chunk.content, end="", flush=True)
    except Exception as e:
        print(f"\nStopped: {type(e).__name__} ({getattr(e, 'reason', None)})")


async def main():
    logging.basicConfig(level=logging.INFO)
    await example_stream_with_tools()
    await example_cancellation()


if __name__ == "__main__":
    asyncio.run(main())
