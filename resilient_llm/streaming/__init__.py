"""Streaming reconstruction layer.

This layer handles:
- Vendor chunk normalization to RawDelta
- Tool call reconstruction from interleaved fragments
- Usage aggregation into categorized counters
- Pull loops with cancellation and retried stream setup
"""

from .adapter import StreamAdapter
from .aggregator import UsageAggregator
from .helpers import StreamingHelper
from .reconstructor import StreamReconstructor
from .types import RawDelta, ToolCallDelta

__all__ = [
    "StreamAdapter",
    "UsageAggregator",
    "StreamingHelper",
    "StreamReconstructor",
    "RawDelta",
    "ToolCallDelta"
]
