"""
Resilient LLM - retry and stream reconstruction for generative AI APIs.

This package sits between an application and a remote LLM API:
- Retry with exponential backoff, per-attempt timeouts and cancellation
- Error classification (transient, fatal, context window exceeded)
- Reconstruction of text, tool calls and usage from streamed deltas
"""

__version__ = "0.1.0"

from .models.streaming import StreamChunk, StreamResult, ToolCall
from .models.usage import AggregatedUsage, UsageSnapshot
from .reliability import (
    AttemptTimeoutError,
    AuthenticationError,
    CancellationToken,
    CancelledError,
    ContextWindowError,
    ContextWindowInfo,
    ErrorClassifier,
    ProviderError,
    RateLimitError,
    ResilientExecutor,
    RetryContext,
    RetryEvents,
    RetryPolicy,
    calculate_backoff,
    with_retry,
)
from .streaming import (
    RawDelta,
    StreamAdapter,
    StreamingHelper,
    StreamReconstructor,
    ToolCallDelta,
    UsageAggregator,
)

__all__ = [
    # Execution
    "ResilientExecutor",
    "with_retry",
    "RetryPolicy",
    "RetryContext",
    "RetryEvents",
    "CancellationToken",
    "calculate_backoff",

    # Errors
    "ErrorClassifier",
    "ProviderError",
    "ContextWindowError",
    "RateLimitError",
    "AuthenticationError",
    "CancelledError",
    "AttemptTimeoutError",
    "ContextWindowInfo",

    # Streaming
    "StreamReconstructor",
    "StreamAdapter",
    "StreamingHelper",
    "UsageAggregator",
    "RawDelta",
    "ToolCallDelta",

    # Models
    "StreamChunk",
    "StreamResult",
    "ToolCall",
    "AggregatedUsage",
    "UsageSnapshot",
]
