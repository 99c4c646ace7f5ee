"""
Stream reconstruction.

Folds raw streaming deltas into semantic ``StreamChunk`` events. The
reconstructor is a synchronous state machine: the caller owns the loop,
calls ``consume`` once per delta in arrival order (draining ``take_pending``
after each), then calls ``finalize`` once when the source is exhausted.

Tool calls arrive as interleaved fragments keyed by index. Transports send
no explicit end marker for a call, so a fragment that receives no update in
a step is treated as complete.
"""

from typing import Dict, List

from ..models.streaming import StreamChunk, ToolCall, ToolCallFragment
from ..observability.logging import ResilienceLogger
from .aggregator import UsageAggregator
from .types import RawDelta

logger = ResilienceLogger("streaming")


class StreamReconstructor:
    """Rebuilds text, tool call and usage events from one stream's deltas.

    One instance per stream; instances are not reusable and must be fed by a
    single consumer.
    """

    def __init__(self):
        self.fragments_by_index: Dict[int, ToolCallFragment] = {}
        self.ordered_fragments: List[ToolCallFragment] = []
        self._pending: List[StreamChunk] = []
        self._finalized = False

    @property
    def tool_calls(self) -> List[ToolCall]:
        """Snapshots of every tool call seen so far, in first-seen order."""
        return [fragment.snapshot() for fragment in self.ordered_fragments]

    def consume(self, delta: RawDelta) -> StreamChunk:
        """
        Process one delta.

        Args:
            delta: Next delta from the transport

        Returns:
            StreamChunk for this delta (may be empty)

        Raises:
            RuntimeError: If called after ``finalize``
        """
        if self._finalized:
            raise RuntimeError("StreamReconstructor already finalized")

        for fragment in self.ordered_fragments:
            fragment.updated_this_step = False

        chunk = StreamChunk(
            content=delta.content,
            finish_reason=delta.finish_reason,
            refusal=delta.refusal
        )
        if delta.usage is not None:
            chunk.usage = UsageAggregator.convert(delta.usage)

        # Only one named/updated slot per chunk; the last event wins
        for event in delta.tool_calls:
            fragment = self._fragment(event.index)
            if event.id:
                fragment.id = event.id
            if event.name:
                fragment.name = event.name
            if event.arguments_chunk:
                fragment.arguments += event.arguments_chunk
            fragment.updated_this_step = True

            if fragment.arguments:
                if not fragment.named:
                    fragment.named = True
                    chunk.tool_call_named = fragment.snapshot()
                    chunk.tool_call_arguments_updated = None
                else:
                    chunk.tool_call_arguments_updated = fragment.snapshot()
                    chunk.tool_call_named = None

        # One completion rides on the chunk; any others queue for take_pending
        for fragment in self.ordered_fragments:
            if not fragment.updated_this_step and not fragment.finished:
                completed = self._finish(fragment)
                if chunk.tool_call_complete is None:
                    chunk.tool_call_complete = completed
                else:
                    self._pending.append(StreamChunk(tool_call_complete=completed))

        return chunk

    def take_pending(self) -> List[StreamChunk]:
        """
        Return and clear completions that did not fit on ``consume`` chunks.

        Call after each ``consume`` to keep completions in stream order.

        Returns:
            Completion-only chunks, in first-seen order
        """
        pending, self._pending = self._pending, []
        return pending

    def finalize(self) -> List[StreamChunk]:
        """
        Complete every unfinished tool call at end of stream.

        Returns:
            Queued completions, then one chunk per newly completed call, in
            first-seen order; empty on a second call
        """
        if self._finalized:
            return []
        self._finalized = True

        return self.take_pending() + [
            StreamChunk(tool_call_complete=self._finish(fragment))
            for fragment in self.ordered_fragments
            if not fragment.finished
        ]

    def _fragment(self, index: int) -> ToolCallFragment:
        fragment = self.fragments_by_index.get(index)
        if fragment is None:
            fragment = ToolCallFragment(index=index)
            self.fragments_by_index[index] = fragment
            self.ordered_fragments.append(fragment)
        return fragment

    def _finish(self, fragment: ToolCallFragment) -> ToolCall:
        fragment.finished = True
        logger.debug(
            "Tool call complete",
            index=fragment.index,
            name=fragment.name or None,
            arguments_length=len(fragment.arguments)
        )
        return fragment.snapshot()
