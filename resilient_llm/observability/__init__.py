"""Logging helpers for the resilience layer.

The library only emits records under the ``resilient_llm`` logger
hierarchy; configuring handlers is left to the application.
"""

from .logging import ResilienceLogger

__all__ = ["ResilienceLogger"]
