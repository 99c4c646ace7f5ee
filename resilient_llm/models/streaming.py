"""
Reconstructed streaming output.

``ToolCallFragment`` is the mutable accumulator a reconstructor owns for one
tool call index; consumers only ever see immutable ``ToolCall`` snapshots
attached to ``StreamChunk`` objects.
"""

from dataclasses import dataclass
from typing import List, Literal, Optional

from .usage import AggregatedUsage

FinishReason = Literal["stop", "length", "tool_calls", "content_filter"]


@dataclass(frozen=True)
class ToolCall:
    """Snapshot of a tool call at the moment an event was emitted."""
    index: int
    id: str = ""
    name: str = ""
    arguments: str = ""
    named: bool = False
    finished: bool = False


@dataclass
class ToolCallFragment:
    """Accumulating state of one tool call within a stream.

    Attributes:
        index: Transport-assigned index, stable for the stream
        id: Call id, assigned once
        name: Function name, assigned once
        arguments: Raw argument text, append-only
        named: Whether the first non-empty-arguments event has fired
        finished: Terminal; flips to True exactly once
        updated_this_step: Touched by the delta currently being consumed
    """
    index: int
    id: str = ""
    name: str = ""
    arguments: str = ""
    named: bool = False
    finished: bool = False
    updated_this_step: bool = False

    def snapshot(self) -> ToolCall:
        return ToolCall(
            index=self.index,
            id=self.id,
            name=self.name,
            arguments=self.arguments,
            named=self.named,
            finished=self.finished
        )


@dataclass
class StreamChunk:
    """One reconstructed output unit.

    Each tool call field holds at most one snapshot. A single chunk can carry
    a named/updated event for the call that is growing and the completion of
    the call that stopped growing.
    """
    content: Optional[str] = None
    finish_reason: Optional[FinishReason] = None
    refusal: Optional[str] = None
    usage: Optional[AggregatedUsage] = None
    tool_call_named: Optional[ToolCall] = None
    tool_call_arguments_updated: Optional[ToolCall] = None
    tool_call_complete: Optional[ToolCall] = None

    def is_empty(self) -> bool:
        return (
            self.content is None
            and self.finish_reason is None
            and self.refusal is None
            and self.usage is None
            and self.tool_call_named is None
            and self.tool_call_arguments_updated is None
            and self.tool_call_complete is None
        )


@dataclass
class StreamResult:
    """Everything a finished stream produced, folded together."""
    content: str = ""
    refusal: Optional[str] = None
    finish_reason: Optional[FinishReason] = None
    tool_calls: Optional[List[ToolCall]] = None
    usage: Optional[AggregatedUsage] = None
    chunks: int = 0
