"""Helper utilities for common streaming patterns."""

from __future__ import annotations

from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, List, Optional, Union

from ..models.streaming import StreamChunk, StreamResult, ToolCall
from ..models.usage import AggregatedUsage, TextUsage
from ..observability.logging import ResilienceLogger
from ..reliability.cancellation import CancellationSignal, CancellationToken
from ..reliability.error_classifier import ErrorClassifier
from ..reliability.errors import CancelledError
from ..reliability.policy import RetryContext, RetryEvents, RetryPolicy
from ..reliability.retry import ResilientExecutor
from .adapter import StreamAdapter
from .reconstructor import StreamReconstructor

logger = ResilienceLogger("streaming")

DeltaSource = Union[AsyncIterable[Any], Iterable[Any]]

StreamSetup = Callable[[CancellationToken], Awaitable[DeltaSource]]


class StreamingHelper:
    """Helper for common streaming patterns."""

    @staticmethod
    async def reconstruct(
        deltas: DeltaSource,
        reconstructor: Optional[StreamReconstructor] = None,
        adapter: Optional[StreamAdapter] = None,
        cancel_token: Optional[CancellationSignal] = None
    ) -> AsyncIterator[StreamChunk]:
        """Drive a reconstructor over a delta source.

        Args:
            deltas: Async or sync iterable of ``RawDelta`` (or vendor chunks
                when ``adapter`` is given)
            reconstructor: Reconstructor to feed; a fresh one by default
            adapter: Normalizes vendor chunks to ``RawDelta``
            cancel_token: Checked before each delta is consumed

        Yields:
            One chunk per delta followed by any queued completions, then one
            chunk per tool call completed at end of stream

        Raises:
            CancelledError: If ``cancel_token`` fires mid-stream
        """
        reconstructor = reconstructor or StreamReconstructor()

        try:
            async for item in _iterate(deltas):
                if cancel_token is not None and cancel_token.is_cancelled:
                    raise CancelledError(reason=getattr(cancel_token, "reason", None))

                delta = adapter.normalize_delta(item) if adapter else item
                yield reconstructor.consume(delta)
                for chunk in reconstructor.take_pending():
                    yield chunk
        finally:
            aclose = getattr(deltas, "aclose", None)
            if aclose is not None:
                await aclose()

        for chunk in reconstructor.finalize():
            yield chunk

    @staticmethod
    async def stream_with_retry(
        setup: StreamSetup,
        context: RetryContext,
        policy: Optional[RetryPolicy] = None,
        events: Optional[RetryEvents] = None,
        cancel_token: Optional[CancellationSignal] = None,
        adapter: Optional[StreamAdapter] = None,
        executor: Optional[ResilientExecutor] = None
    ) -> AsyncIterator[StreamChunk]:
        """Open a stream under retry, then reconstruct it.

        Only ``setup`` is retried. Once deltas flow, a failure propagates
        as-is.

        Args:
            setup: Operation that opens the stream and returns its deltas
            context: Call context for retry events and logs
            policy: Per-call retry policy
            events: Retry event callbacks
            cancel_token: Caller's cancellation token
            adapter: Normalizes vendor chunks to ``RawDelta``
            executor: Executor to run ``setup``; a fresh one by default

        Yields:
            Reconstructed chunks. If ``setup`` fails with a context window
            error, a single ``finish_reason="length"`` chunk instead.
        """
        executor = executor or ResilientExecutor()

        try:
            deltas = await executor.execute(setup, context, policy, events, cancel_token)
        except CancelledError:
            raise
        except Exception as error:
            if not ErrorClassifier.is_context_window_error(error):
                raise
            logger.warning("Context window exceeded, ending stream", context)
            yield StreamingHelper.context_window_chunk(error)
            return

        async for chunk in StreamingHelper.reconstruct(
            deltas,
            adapter=adapter,
            cancel_token=cancel_token
        ):
            yield chunk

    @staticmethod
    def context_window_chunk(error: BaseException) -> StreamChunk:
        """Terminal chunk reporting a context window overflow.

        ``usage.text.input`` carries the window size when the error states it.
        """
        info = ErrorClassifier.parse_context_window_error(error)
        usage = None
        if info is not None and info.context_window:
            usage = AggregatedUsage(text=TextUsage(input=info.context_window))
        return StreamChunk(finish_reason="length", usage=usage)

    @staticmethod
    async def collect(chunks: Union[AsyncIterable[StreamChunk], Iterable[StreamChunk]]) -> StreamResult:
        """Fold reconstructed chunks into a ``StreamResult``.

        Args:
            chunks: Chunks from ``reconstruct`` or ``stream_with_retry``

        Returns:
            StreamResult with joined text, completed tool calls and the last
            usage seen
        """
        result = StreamResult()
        text: List[str] = []
        refusal: List[str] = []
        tool_calls: List[ToolCall] = []

        async for chunk in _iterate(chunks):
            result.chunks += 1
            if chunk.content:
                text.append(chunk.content)
            if chunk.refusal:
                refusal.append(chunk.refusal)
            if chunk.finish_reason:
                result.finish_reason = chunk.finish_reason
            if chunk.usage is not None:
                result.usage = chunk.usage
            if chunk.tool_call_complete is not None:
                tool_calls.append(chunk.tool_call_complete)

        result.content = "".join(text)
        result.refusal = "".join(refusal) if refusal else None
        result.tool_calls = tool_calls or None
        return result


async def _iterate(source: DeltaSource) -> AsyncIterator[Any]:
    if hasattr(source, "__aiter__"):
        async for item in source:
            yield item
    else:
        for item in source:
            yield item
