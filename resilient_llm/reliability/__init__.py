"""Reliability layer for retries, timeouts and cancellation.

This layer handles:
- Typed error definitions
- Error classification (transient, fatal, context window)
- Exponential backoff with jitter
- Retry execution with per-attempt timeouts
- Cooperative cancellation
"""

from .backoff import calculate_backoff
from .cancellation import CancellationSignal, CancellationToken
from .error_classifier import ErrorCategory, ErrorClassification, ErrorClassifier
from .errors import (
    AttemptTimeoutError,
    AuthenticationError,
    CancelledError,
    ContextWindowError,
    ContextWindowInfo,
    ProviderError,
    RateLimitError,
)
from .policy import RetryContext, RetryEvents, RetryPolicy
from .retry import Operation, ResilientExecutor, with_retry

__all__ = [
    "calculate_backoff",
    "CancellationSignal",
    "CancellationToken",
    "ErrorCategory",
    "ErrorClassification",
    "ErrorClassifier",
    "AttemptTimeoutError",
    "AuthenticationError",
    "CancelledError",
    "ContextWindowError",
    "ContextWindowInfo",
    "ProviderError",
    "RateLimitError",
    "RetryContext",
    "RetryEvents",
    "RetryPolicy",
    "Operation",
    "ResilientExecutor",
    "with_retry"
]
