"""Unit tests for streaming helpers."""

import pytest
from unittest.mock import AsyncMock

from resilient_llm.models.streaming import StreamChunk
from resilient_llm.models.usage import AggregatedUsage, TextUsage
from resilient_llm.reliability.errors import CancelledError
from resilient_llm.reliability.policy import RetryPolicy
from resilient_llm.streaming.adapter import StreamAdapter
from resilient_llm.streaming.helpers import StreamingHelper
from resilient_llm.streaming.reconstructor import StreamReconstructor
from resilient_llm.streaming.types import RawDelta, ToolCallDelta
from tests.helpers.mock_exceptions import (
    MockAuthenticationError,
    MockContextLengthError,
    MockStatusError,
)
from tests.helpers.streaming_mocks import (
    create_delta_stream,
    create_failing_stream,
    create_openai_text_chunks,
)


async def drain(chunks):
    return [chunk async for chunk in chunks]


@pytest.mark.unit
class TestReconstruct:
    """Test the pull loop."""

    @pytest.mark.asyncio
    async def test_tool_call_stream(self, weather_deltas):
        chunks = await drain(StreamingHelper.reconstruct(create_delta_stream(weather_deltas)))

        assert len(chunks) == 4
        completed = [chunk.tool_call_complete.index for chunk in chunks if chunk.tool_call_complete]
        assert completed == [0, 1]

    @pytest.mark.asyncio
    async def test_calls_completing_in_same_step(self):
        deltas = [
            RawDelta(tool_calls=[
                ToolCallDelta(index=0, name="f", arguments_chunk="{}"),
                ToolCallDelta(index=1, name="g", arguments_chunk="{}"),
            ]),
            RawDelta(content="done"),
        ]

        chunks = await drain(StreamingHelper.reconstruct(deltas))

        completed = [chunk.tool_call_complete.index for chunk in chunks if chunk.tool_call_complete]
        assert completed == [0, 1]
        assert [chunk.content for chunk in chunks] == [None, "done", None]

    @pytest.mark.asyncio
    async def test_sync_iterable(self):
        chunks = await drain(StreamingHelper.reconstruct([RawDelta(content="a"), RawDelta(content="b")]))

        assert [chunk.content for chunk in chunks] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_with_adapter(self):
        adapter = StreamAdapter("openai")
        stream = create_delta_stream(create_openai_text_chunks(["Hello", " world"]))

        chunks = await drain(StreamingHelper.reconstruct(stream, adapter=adapter))

        assert [chunk.content for chunk in chunks if chunk.content] == ["Hello", " world"]
        assert chunks[-1].usage.text.input == 10
        assert adapter.get_metrics()["chunks"] == 4

    @pytest.mark.asyncio
    async def test_uses_given_reconstructor(self, reconstructor, weather_deltas):
        await drain(StreamingHelper.reconstruct(weather_deltas, reconstructor=reconstructor))

        assert len(reconstructor.tool_calls) == 2
        with pytest.raises(RuntimeError):
            reconstructor.consume(RawDelta())

    @pytest.mark.asyncio
    async def test_cancellation_mid_stream(self, cancel_token):
        closed = []

        async def source():
            try:
                for text in ["a", "b", "c"]:
                    yield RawDelta(content=text)
            finally:
                closed.append(True)

        received = []
        with pytest.raises(CancelledError) as exc_info:
            async for chunk in StreamingHelper.reconstruct(source(), cancel_token=cancel_token):
                received.append(chunk.content)
                cancel_token.cancel("user")

        assert received == ["a"]
        assert exc_info.value.reason == "user"
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_source_error_propagates(self):
        error = ConnectionError("stream dropped")
        stream = create_failing_stream([RawDelta(content="partial")], error)

        with pytest.raises(ConnectionError) as exc_info:
            await drain(StreamingHelper.reconstruct(stream))

        assert exc_info.value is error


@pytest.mark.unit
class TestStreamWithRetry:
    """Test retried stream setup."""

    @pytest.mark.asyncio
    async def test_setup_retried(self, retry_context, fast_policy, mock_events):
        setup = AsyncMock(side_effect=[
            MockStatusError(503, "Service unavailable"),
            create_delta_stream([RawDelta(content="ok", finish_reason="stop")]),
        ])

        result = await StreamingHelper.collect(StreamingHelper.stream_with_retry(
            setup, retry_context, fast_policy, mock_events
        ))

        assert result.content == "ok"
        assert result.finish_reason == "stop"
        assert setup.await_count == 2
        mock_events.on_retry.assert_called_once()

    @pytest.mark.asyncio
    async def test_context_window_yields_length_chunk(self, retry_context, fast_policy):
        setup = AsyncMock(side_effect=MockContextLengthError())

        chunks = await drain(StreamingHelper.stream_with_retry(setup, retry_context, fast_policy))

        assert len(chunks) == 1
        assert chunks[0].finish_reason == "length"
        assert chunks[0].usage.text.input == 128000
        assert setup.await_count == 1

    @pytest.mark.asyncio
    async def test_fatal_error_raised(self, retry_context, fast_policy):
        setup = AsyncMock(side_effect=MockAuthenticationError())

        with pytest.raises(MockAuthenticationError):
            await drain(StreamingHelper.stream_with_retry(setup, retry_context, fast_policy))

    @pytest.mark.asyncio
    async def test_cancelled_before_setup(self, retry_context, cancel_token):
        cancel_token.cancel()
        setup = AsyncMock()

        with pytest.raises(CancelledError):
            await drain(StreamingHelper.stream_with_retry(setup, retry_context, cancel_token=cancel_token))

        setup.assert_not_called()

    @pytest.mark.asyncio
    async def test_adapter_applied(self, retry_context):
        setup = AsyncMock(return_value=create_delta_stream(create_openai_text_chunks(["Hi"])))

        result = await StreamingHelper.collect(StreamingHelper.stream_with_retry(
            setup, retry_context, RetryPolicy(max_retries=0), adapter=StreamAdapter("openai")
        ))

        assert result.content == "Hi"
        assert result.usage.to_dict() == {"text": {"input": 10, "output": 2}}


@pytest.mark.unit
class TestContextWindowChunk:
    """Test the terminal length chunk."""

    def test_known_window(self):
        chunk = StreamingHelper.context_window_chunk(MockContextLengthError())

        assert chunk.finish_reason == "length"
        assert chunk.usage.to_dict() == {"text": {"input": 128000}}

    def test_unknown_window(self):
        chunk = StreamingHelper.context_window_chunk(MockStatusError(413, "Prompt is too long"))

        assert chunk.finish_reason == "length"
        assert chunk.usage is None


@pytest.mark.unit
class TestCollect:
    """Test folding chunks into a result."""

    @pytest.mark.asyncio
    async def test_collect_tool_calls(self, weather_deltas):
        result = await StreamingHelper.collect(StreamingHelper.reconstruct(weather_deltas))

        assert result.content == ""
        assert [call.name for call in result.tool_calls] == ["get_weather", "x"]
        assert result.tool_calls[0].arguments == '{"loc":"SF"}'
        assert result.chunks == 4

    @pytest.mark.asyncio
    async def test_collect_calls_completing_in_same_step(self):
        deltas = [
            RawDelta(tool_calls=[
                ToolCallDelta(index=0, name="f", arguments_chunk="{}"),
                ToolCallDelta(index=1, name="g", arguments_chunk="{}"),
            ]),
            RawDelta(content="done"),
        ]

        result = await StreamingHelper.collect(StreamingHelper.reconstruct(deltas))

        assert result.content == "done"
        assert [call.name for call in result.tool_calls] == ["f", "g"]

    @pytest.mark.asyncio
    async def test_collect_text_refusal_and_usage(self):
        first = AggregatedUsage(text=TextUsage(input=1))
        last = AggregatedUsage(text=TextUsage(input=5, output=2))
        chunks = [
            StreamChunk(content="Hel", usage=first),
            StreamChunk(content="lo", refusal="No"),
            StreamChunk(finish_reason="stop", usage=last),
        ]

        result = await StreamingHelper.collect(chunks)

        assert result.content == "Hello"
        assert result.refusal == "No"
        assert result.finish_reason == "stop"
        assert result.usage is last
        assert result.tool_calls is None
        assert result.chunks == 3

    @pytest.mark.asyncio
    async def test_collect_empty(self):
        result = await StreamingHelper.collect([])

        assert result.content == ""
        assert result.refusal is None
        assert result.finish_reason is None
        assert result.usage is None
        assert result.chunks == 0
