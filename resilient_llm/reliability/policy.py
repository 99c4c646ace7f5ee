"""
Retry policy, call context and lifecycle callbacks.

These three values are the whole configuration surface of the executor.
The policy is immutable; a per-call override is laid over a provider-level
default with ``RetryPolicy.merge``.
"""

import os
import re
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, List, Mapping, Optional, Pattern, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import constants


class RetryPolicy(BaseModel):
    """
    Retry behavior for one call.

    Delays and timeouts are in milliseconds.
    """
    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=constants.DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt")
    initial_delay_ms: float = Field(default=constants.DEFAULT_INITIAL_DELAY_MS, ge=0, description="Delay before the first retry")
    max_delay_ms: float = Field(default=constants.DEFAULT_MAX_DELAY_MS, ge=0, description="Cap on any single delay")
    backoff_multiplier: float = Field(default=constants.DEFAULT_BACKOFF_MULTIPLIER, gt=0, description="Exponential growth factor")
    jitter: bool = Field(default=constants.DEFAULT_JITTER, description="Randomize delays in [0, delay]")
    retryable_statuses: FrozenSet[int] = Field(
        default=constants.DEFAULT_RETRYABLE_STATUSES,
        description="Statuses that trigger a retry (0 = no HTTP status)"
    )
    retryable_message_patterns: List[Pattern] = Field(
        default_factory=list,
        description="Message regexes that trigger a retry"
    )
    timeout_ms: Optional[float] = Field(None, gt=0, description="Per-attempt timeout")

    @field_validator("retryable_message_patterns", mode="before")
    @classmethod
    def compile_patterns(cls, v):
        if v is None:
            return []
        return [re.compile(p) if isinstance(p, str) else p for p in v]

    def merge(self, override: Union["RetryPolicy", Mapping[str, Any], None]) -> "RetryPolicy":
        """
        Lay a per-call override over this policy.

        Only fields the override explicitly sets replace ours.

        Args:
            override: Another policy (its explicitly set fields) or a mapping

        Returns:
            A new RetryPolicy
        """
        if override is None:
            return self
        if isinstance(override, RetryPolicy):
            updates = override.model_dump(exclude_unset=True)
        else:
            updates = dict(override)
        merged = self.model_dump(exclude_unset=True)
        merged.update(updates)
        return RetryPolicy(**merged)

    @classmethod
    def from_env(cls, prefix: str = constants.ENV_PREFIX) -> "RetryPolicy":
        """
        Build a policy from environment variables.

        Variables not set keep their defaults. See ``constants.ENV_EXAMPLE``.
        """
        load_dotenv()

        values = {}
        env_fields = {
            constants.ENV_MAX_RETRIES: ("max_retries", int),
            constants.ENV_INITIAL_DELAY_MS: ("initial_delay_ms", float),
            constants.ENV_MAX_DELAY_MS: ("max_delay_ms", float),
            constants.ENV_BACKOFF_MULTIPLIER: ("backoff_multiplier", float),
            constants.ENV_JITTER: ("jitter", _parse_bool),
            constants.ENV_RETRYABLE_STATUSES: ("retryable_statuses", _parse_statuses),
            constants.ENV_TIMEOUT_MS: ("timeout_ms", float),
        }
        for suffix, (name, parse) in env_fields.items():
            raw = os.getenv(prefix + suffix)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[name] = parse(raw.strip())
            except ValueError as e:
                raise ValueError(f"Invalid value for {prefix + suffix}: {raw!r}") from e

        return cls(**values)


def _parse_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(raw)


def _parse_statuses(raw: str) -> FrozenSet[int]:
    return frozenset(int(part) for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class RetryContext:
    """Identifies a call in event callbacks and logs. Never mutated."""
    operation: str
    provider: str
    model: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    request_id: Optional[str] = None

    def elapsed_ms(self) -> int:
        """Milliseconds since ``start_time``."""
        return int((time.time() - self.start_time) * 1000)


Callback = Callable[..., Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class RetryEvents:
    """
    Optional lifecycle callbacks.

    Each may be a plain function or a coroutine function. Return values are
    ignored.

    Attributes:
        on_retry: ``(attempt, error, delay_ms, context)`` before each backoff
        on_timeout: ``(duration_ms, context)`` when an attempt times out
        on_max_retries_exceeded: ``(attempts, last_error, context)`` once retries are exhausted
        on_success: ``(attempts, duration_ms, context)`` on success
    """
    on_retry: Optional[Callback] = None
    on_timeout: Optional[Callback] = None
    on_max_retries_exceeded: Optional[Callback] = None
    on_success: Optional[Callback] = None
