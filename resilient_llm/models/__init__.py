from .streaming import FinishReason, StreamChunk, StreamResult, ToolCall, ToolCallFragment
from .usage import (
    AggregatedUsage,
    AudioUsage,
    CompletionTokensDetails,
    PromptTokensDetails,
    ReasoningUsage,
    TextUsage,
    UsageSnapshot,
)

__all__ = [
    "FinishReason",
    "StreamChunk",
    "StreamResult",
    "ToolCall",
    "ToolCallFragment",
    "AggregatedUsage",
    "AudioUsage",
    "CompletionTokensDetails",
    "PromptTokensDetails",
    "ReasoningUsage",
    "TextUsage",
    "UsageSnapshot",
]
