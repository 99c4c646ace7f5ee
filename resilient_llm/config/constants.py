"""
Resilience defaults

Central location for retry policy defaults and the environment variables
that can override them. Delays and timeouts are in milliseconds.
"""

# Retry policy defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 60000
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_JITTER = True

# 0 stands for network-level failures that never produced an HTTP status
DEFAULT_RETRYABLE_STATUSES = frozenset({0, 429, 500, 503})

# Only these statuses can carry a context window overflow
CONTEXT_WINDOW_STATUSES = frozenset({413, 429})

# Environment variables read by RetryPolicy.from_env (prefix + suffix)
ENV_PREFIX = "RESILIENT_LLM_"
ENV_MAX_RETRIES = "MAX_RETRIES"
ENV_INITIAL_DELAY_MS = "INITIAL_DELAY_MS"
ENV_MAX_DELAY_MS = "MAX_DELAY_MS"
ENV_BACKOFF_MULTIPLIER = "BACKOFF_MULTIPLIER"
ENV_JITTER = "JITTER"
ENV_RETRYABLE_STATUSES = "RETRYABLE_STATUSES"
ENV_TIMEOUT_MS = "TIMEOUT_MS"

# Example .env
ENV_EXAMPLE = """
RESILIENT_LLM_MAX_RETRIES=5
RESILIENT_LLM_INITIAL_DELAY_MS=500
RESILIENT_LLM_MAX_DELAY_MS=30000
RESILIENT_LLM_RETRYABLE_STATUSES=0,429,500,502,503
RESILIENT_LLM_TIMEOUT_MS=45000
"""
