import random

from .policy import RetryPolicy


def calculate_backoff(attempt: int, policy: RetryPolicy) -> int:
    """
    Calculate the delay before the next retry.

    ``min(initial_delay * multiplier ** attempt, max_delay)``, then, with
    jitter, a uniform draw from ``[0, delay]``.

    Args:
        attempt: Number of failed attempts so far (0-based)
        policy: Retry policy

    Returns:
        Delay in whole milliseconds
    """
    try:
        delay = policy.initial_delay_ms * (policy.backoff_multiplier ** attempt)
    except OverflowError:
        delay = policy.max_delay_ms

    delay = min(delay, policy.max_delay_ms)

    # Multiplicative jitter to prevent thundering herd
    if policy.jitter:
        delay = random.uniform(0, delay)

    return int(delay)
