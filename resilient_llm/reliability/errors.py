"""
Error types raised or recognised by the resilience layer.

Provider failures are never wrapped by the executor: transient, fatal and
context window errors reach the caller as the original exception. The types
here cover what the layer itself produces (cancellation, attempt timeouts)
plus a base error transports can raise with HTTP metadata attached, and
subclasses the classifier recognises by type.
"""

from dataclasses import dataclass
from typing import Optional


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    Transports should raise this (or any exception exposing ``status`` or
    ``status_code``) for:
    - API transport errors
    - Authentication failures
    - Rate limiting
    - Context window overflows reported by the API

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable, 0 for network failures
        retry_after: Seconds to wait before retry if the API sent a hint
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.original_error = original_error


class ContextWindowError(ProviderError):
    """
    The request did not fit the model's context window.

    Recognised by type, so the message need not match any known wording.
    Never retried.

    Attributes:
        context_window: Window size in tokens, when the transport knows it
    """

    def __init__(
        self,
        message: str,
        provider: str,
        context_window: Optional[int] = None,
        status_code: Optional[int] = 413,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, provider, status_code=status_code, original_error=original_error)
        self.context_window = context_window


class RateLimitError(ProviderError):
    """Rate limit exceeded (HTTP 429). Retryable under the default policy."""

    def __init__(
        self,
        message: str,
        provider: str,
        retry_after: Optional[float] = None,
        status_code: Optional[int] = 429,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(
            message,
            provider,
            status_code=status_code,
            retry_after=retry_after,
            original_error=original_error
        )


class AuthenticationError(ProviderError):
    """Invalid or missing credentials (HTTP 401). Fatal."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = 401,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, provider, status_code=status_code, original_error=original_error)


class CancelledError(Exception):
    """Raised when the caller's cancellation token fires.

    An ordinary ``Exception``, distinct from ``asyncio.CancelledError``.
    """

    def __init__(self, message: str = "Operation cancelled", reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason


class AttemptTimeoutError(Exception):
    """Raised when a single attempt exceeds ``RetryPolicy.timeout_ms``.

    Carries status 0 so the default policy treats it like any other
    network-level failure.
    """

    status_code = 0

    def __init__(self, timeout_ms: float):
        self.timeout_ms = timeout_ms
        self.message = f"Operation timed out after {timeout_ms:g}ms"
        super().__init__(self.message)


@dataclass(frozen=True)
class ContextWindowInfo:
    """Details parsed from a context window error."""
    message: str
    context_window: Optional[int] = None
