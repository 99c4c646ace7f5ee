from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class ToolCallDelta:
    """One tool call update inside a raw delta.

    Attributes:
        index: Stable index the transport assigns to the call for the stream
        id: Call id, usually only on the first update
        name: Function name, usually only on the first update
        arguments_chunk: Next piece of the raw argument text
    """
    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments_chunk: Optional[str] = None


@dataclass
class RawDelta:
    """Vendor-neutral streaming delta as produced by a stream decoder.

    Attributes:
        content: Text fragment
        finish_reason: Why generation stopped, on the last content delta
        refusal: Refusal text fragment
        usage: Usage snapshot in any shape ``UsageSnapshot.from_raw`` accepts
        tool_calls: Tool call updates, in transport order
        raw_event: Original provider event for debugging
    """
    content: Optional[str] = None
    finish_reason: Optional[str] = None
    refusal: Optional[str] = None
    usage: Optional[Any] = None
    tool_calls: List[ToolCallDelta] = field(default_factory=list)
    raw_event: Optional[Any] = None
