from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Union

from openai.types.chat import ChatCompletionChunk

from .types import RawDelta, ToolCallDelta


class StreamAdapter:
    """Adapter from OpenAI-compatible chat completion chunks to ``RawDelta``.

    This is the only place that knows the vendor chunk layout; the
    reconstructor only ever sees ``RawDelta``. The adapter also tracks
    streaming metrics.
    """

    def __init__(self, provider: str = "openai", model: Optional[str] = None):
        """Initialize StreamAdapter.

        Args:
            provider: Provider label used in metrics
            model: Model name used in metrics
        """
        self.provider = provider.lower()
        self.model = model
        self._chunk_count = 0
        self._start_time: Optional[float] = None
        self._total_chars = 0

    def normalize_delta(self, chunk: Union[RawDelta, ChatCompletionChunk, Dict[str, Any]]) -> RawDelta:
        """Normalize one stream chunk.

        Args:
            chunk: ``RawDelta`` (passed through), ``ChatCompletionChunk``, or a
                dict in the chat completion chunk shape

        Returns:
            RawDelta for the first choice plus any usage on the chunk
        """
        if isinstance(chunk, RawDelta):
            self._track(chunk)
            return chunk

        if isinstance(chunk, dict):
            chunk = ChatCompletionChunk.model_validate(chunk)

        delta = RawDelta(usage=chunk.usage, raw_event=chunk)

        if chunk.choices:
            choice = chunk.choices[0]
            delta.content = choice.delta.content or None
            delta.refusal = getattr(choice.delta, "refusal", None) or None
            delta.finish_reason = _map_finish_reason(choice.finish_reason)
            delta.tool_calls = _tool_call_deltas(choice.delta.tool_calls)

        self._track(delta)
        return delta

    def _track(self, delta: RawDelta) -> None:
        if self._start_time is None:
            self._start_time = time.time()
        self._chunk_count += 1
        self._total_chars += len(delta.content or "")

    def reset(self) -> None:
        """Reset metrics before a new stream."""
        self._chunk_count = 0
        self._start_time = None
        self._total_chars = 0

    def get_metrics(self) -> Dict[str, Any]:
        """Get streaming metrics.

        Returns:
            Dictionary with streaming metrics
        """
        duration = time.time() - self._start_time if self._start_time else 0
        return {
            "provider": self.provider,
            "model": self.model,
            "chunks": self._chunk_count,
            "total_chars": self._total_chars,
            "duration_seconds": duration,
            "chunks_per_second": self._chunk_count / duration if duration > 0 else 0,
            "chars_per_second": self._total_chars / duration if duration > 0 else 0
        }


def _map_finish_reason(reason: Optional[str]) -> Optional[str]:
    # Legacy function calling reports its own reason
    if reason == "function_call":
        return "stop"
    return reason


def _tool_call_deltas(tool_calls: Optional[List[Any]]) -> List[ToolCallDelta]:
    if not tool_calls:
        return []

    events = []
    for call in tool_calls:
        function = call.function
        events.append(ToolCallDelta(
            index=call.index,
            id=call.id,
            name=function.name if function else None,
            arguments_chunk=function.arguments if function else None
        ))
    return events
