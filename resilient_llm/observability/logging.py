"""
Structured logging utility for the resilience layer.

This module provides a consistent logging interface for the executor and the
stream reconstructor, rendering standard fields like operation, provider,
model and request_id as a ``[key=value ...]`` prefix.
"""

import logging
from typing import Any, Optional


class ResilienceLogger:
    """Structured logger for one component of the layer."""

    def __init__(self, component: str):
        """
        Initialize logger for a component.

        Args:
            component: Name of the component (e.g., "retry", "streaming")
        """
        self.component = component
        self.logger = logging.getLogger(f"resilient_llm.{component}")

    def _format_message(self, message: str, **kwargs: Any) -> str:
        """Format message with structured fields."""
        fields = []
        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        if not fields:
            return message
        return f"[{' '.join(fields)}] {message}"

    def _context_fields(self, context: Any) -> dict:
        """Pull the standard fields off a RetryContext-like object."""
        if context is None:
            return {}
        return {
            "operation": getattr(context, "operation", None),
            "provider": getattr(context, "provider", None),
            "model": getattr(context, "model", None),
            "request_id": getattr(context, "request_id", None),
        }

    def debug(self, message: str, context: Optional[Any] = None, **kwargs):
        """Log debug message with structured fields."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                self._format_message(message, **self._context_fields(context), **kwargs)
            )

    def info(self, message: str, context: Optional[Any] = None, **kwargs):
        """Log info message with structured fields."""
        self.logger.info(
            self._format_message(message, **self._context_fields(context), **kwargs)
        )

    def warning(self, message: str, context: Optional[Any] = None, **kwargs):
        """Log warning message with structured fields."""
        self.logger.warning(
            self._format_message(message, **self._context_fields(context), **kwargs)
        )

    def error(self, message: str, context: Optional[Any] = None,
              error: Optional[BaseException] = None, exc_info: bool = False, **kwargs):
        """Log error message with structured fields."""
        if error is not None:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)[:200]  # Truncate long error messages

        self.logger.error(
            self._format_message(message, **self._context_fields(context), **kwargs),
            exc_info=exc_info
        )
