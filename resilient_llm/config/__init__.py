"""Configuration module for the resilience layer."""

# Import all constants
from .constants import *

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_INITIAL_DELAY_MS",
    "DEFAULT_MAX_DELAY_MS",
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_JITTER",
    "DEFAULT_RETRYABLE_STATUSES",
    "CONTEXT_WINDOW_STATUSES",
    "ENV_PREFIX",
]
