"""
Error classification for retry decisions.

This module decides, for any exception a transport raises, whether it is
a context window overflow, a transient failure worth retrying, or fatal.
Classification is duck-typed on ``status`` / ``status_code`` and the
message, so it works with SDK exceptions, httpx errors and ``ProviderError``
alike.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from ..config.constants import CONTEXT_WINDOW_STATUSES
from .errors import CancelledError, ContextWindowError, ContextWindowInfo
from .policy import RetryPolicy


class ErrorCategory(Enum):
    """How the executor treats an error."""
    CANCELLED = "cancelled"
    CONTEXT_WINDOW = "context_window"
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass
class ErrorClassification:
    """Detailed error classification."""
    category: ErrorCategory
    is_retryable: bool
    status: int
    is_network_error: bool = False
    context_window: Optional[int] = None


class ErrorClassifier:
    """Classifies provider errors against a retry policy."""

    # Messages meaning the request did not fit the model's context window.
    # Best-effort heuristic, not exhaustive.
    CONTEXT_WINDOW_PATTERNS = (
        re.compile(r"context.*(?:length|window|size|limit).*exceeded", re.IGNORECASE),
        re.compile(r"maximum.*context.*(?:length|window|size)", re.IGNORECASE),
        re.compile(r"(?:prompt|input|message).*too.*(?:long|large)", re.IGNORECASE),
        re.compile(r"token.*limit.*exceeded", re.IGNORECASE),
        re.compile(r"context.*capacity", re.IGNORECASE),
        re.compile(r"request\s+too\s+large", re.IGNORECASE),
    )

    # Tried in order; the first capture group found is the window size
    CONTEXT_SIZE_PATTERNS = (
        re.compile(r"(?:maximum|max).*context.*(?:length|window|size).*?(?:is|of)?\s*(\d+)", re.IGNORECASE),
        re.compile(r"context.*(?:length|window|size).*?(?:is|of)?\s*(\d+)", re.IGNORECASE),
        re.compile(r"(\d+).*token.*(?:limit|maximum|max)", re.IGNORECASE),
        re.compile(r"limit\s+(\d+)", re.IGNORECASE),
    )

    NETWORK_ERROR_TYPES = (httpx.TransportError, ConnectionError)

    @classmethod
    def get_status(cls, error: BaseException) -> int:
        """
        Extract the HTTP status of an error.

        Looks at ``status``, ``status_code`` and ``response.status_code`` in
        that order. Errors without any status (network failures, timeouts)
        report 0.
        """
        for attr in ("status", "status_code"):
            value = getattr(error, attr, None)
            if isinstance(value, int) and not isinstance(value, bool) and value:
                return value

        response = getattr(error, "response", None)
        if response is not None:
            value = getattr(response, "status_code", None)
            if isinstance(value, int) and not isinstance(value, bool) and value:
                return value

        return 0

    @classmethod
    def get_message(cls, error: BaseException) -> str:
        """Return the error message, preferring a ``message`` attribute."""
        message = getattr(error, "message", None)
        if isinstance(message, str):
            return message
        try:
            return str(error)
        except Exception:
            return ""

    @classmethod
    def is_context_window_error(cls, error: Optional[BaseException]) -> bool:
        """
        Check if an error means the request exceeded the context window.

        True for a ``ContextWindowError``, otherwise only for status 413 or
        429 with a matching message.
        """
        if error is None:
            return False

        if isinstance(error, ContextWindowError):
            return True

        if cls.get_status(error) not in CONTEXT_WINDOW_STATUSES:
            return False

        message = cls.get_message(error)
        return any(pattern.search(message) for pattern in cls.CONTEXT_WINDOW_PATTERNS)

    @classmethod
    def parse_context_window_error(cls, error: Optional[BaseException]) -> Optional[ContextWindowInfo]:
        """
        Parse context window details from an error.

        Returns:
            ContextWindowInfo, or None when the error is not a context window error
        """
        if not cls.is_context_window_error(error):
            return None

        message = cls.get_message(error)

        if isinstance(error, ContextWindowError) and error.context_window is not None:
            return ContextWindowInfo(message=message, context_window=error.context_window)

        context_window = None
        for pattern in cls.CONTEXT_SIZE_PATTERNS:
            match = pattern.search(message)
            if match and match.group(1):
                context_window = int(match.group(1))
                break

        return ContextWindowInfo(message=message, context_window=context_window)

    @classmethod
    def is_retryable(cls, error: Optional[BaseException], policy: Optional[RetryPolicy] = None) -> bool:
        """
        Check if an error should trigger a retry under ``policy``.

        Context window errors and cancellations are never retryable.
        """
        if error is None or isinstance(error, CancelledError):
            return False

        if cls.is_context_window_error(error):
            return False

        policy = policy or RetryPolicy()

        if cls.get_status(error) in policy.retryable_statuses:
            return True

        if policy.retryable_message_patterns:
            message = cls.get_message(error)
            return any(pattern.search(message) for pattern in policy.retryable_message_patterns)

        return False

    @classmethod
    def classify(cls, error: BaseException, policy: Optional[RetryPolicy] = None) -> ErrorClassification:
        """
        Classify an error into one of the ``ErrorCategory`` values.

        Args:
            error: The exception to classify
            policy: Policy deciding retryability (defaults apply if omitted)

        Returns:
            ErrorClassification with category, status and retry info
        """
        status = cls.get_status(error)
        is_network = isinstance(error, cls.NETWORK_ERROR_TYPES)

        if isinstance(error, CancelledError):
            return ErrorClassification(
                category=ErrorCategory.CANCELLED,
                is_retryable=False,
                status=status
            )

        info = cls.parse_context_window_error(error)
        if info is not None:
            return ErrorClassification(
                category=ErrorCategory.CONTEXT_WINDOW,
                is_retryable=False,
                status=status,
                context_window=info.context_window
            )

        if cls.is_retryable(error, policy):
            return ErrorClassification(
                category=ErrorCategory.TRANSIENT,
                is_retryable=True,
                status=status,
                is_network_error=is_network
            )

        return ErrorClassification(
            category=ErrorCategory.FATAL,
            is_retryable=False,
            status=status,
            is_network_error=is_network
        )
