"""Unit tests for retry policy and context."""

import dataclasses
import re
import time

import pytest
from pydantic import ValidationError

from resilient_llm.config import constants
from resilient_llm.reliability.policy import RetryContext, RetryPolicy


@pytest.mark.unit
class TestRetryPolicy:
    """Test policy defaults and validation."""

    def test_defaults(self):
        policy = RetryPolicy()

        assert policy.max_retries == 3
        assert policy.initial_delay_ms == 1000
        assert policy.max_delay_ms == 60000
        assert policy.backoff_multiplier == 2
        assert policy.jitter is True
        assert policy.retryable_statuses == frozenset({0, 429, 500, 503})
        assert policy.retryable_message_patterns == []
        assert policy.timeout_ms is None

    def test_frozen(self):
        policy = RetryPolicy()

        with pytest.raises(ValidationError):
            policy.max_retries = 10

    @pytest.mark.parametrize("kwargs", [
        {"max_retries": -1},
        {"backoff_multiplier": 0},
        {"timeout_ms": 0},
        {"initial_delay_ms": -5},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            RetryPolicy(**kwargs)

    def test_patterns_compiled(self):
        policy = RetryPolicy(retryable_message_patterns=["overloaded", re.compile("busy", re.IGNORECASE)])

        assert all(isinstance(p, re.Pattern) for p in policy.retryable_message_patterns)
        assert policy.retryable_message_patterns[1].search("BUSY")

    def test_statuses_from_list(self):
        policy = RetryPolicy(retryable_statuses=[500, 502])

        assert policy.retryable_statuses == frozenset({500, 502})


@pytest.mark.unit
class TestMerge:
    """Test laying a per-call policy over a default."""

    def test_merge_keeps_unset_fields(self):
        base = RetryPolicy(max_retries=5, timeout_ms=1000)

        merged = base.merge(RetryPolicy(max_retries=1))

        assert merged.max_retries == 1
        assert merged.timeout_ms == 1000

    def test_merge_mapping(self):
        merged = RetryPolicy(max_retries=5).merge({"jitter": False})

        assert merged.max_retries == 5
        assert merged.jitter is False

    def test_merge_none(self):
        base = RetryPolicy(max_retries=5)

        assert base.merge(None) is base

    def test_merge_does_not_mutate(self):
        base = RetryPolicy(max_retries=5)

        base.merge({"max_retries": 0})

        assert base.max_retries == 5


@pytest.mark.unit
class TestFromEnv:
    """Test environment configuration."""

    def test_no_variables_gives_defaults(self, clean_env):
        assert RetryPolicy.from_env() == RetryPolicy()

    def test_reads_variables(self, clean_env):
        clean_env.setenv("RESILIENT_LLM_MAX_RETRIES", "5")
        clean_env.setenv("RESILIENT_LLM_INITIAL_DELAY_MS", "250")
        clean_env.setenv("RESILIENT_LLM_JITTER", "false")
        clean_env.setenv("RESILIENT_LLM_RETRYABLE_STATUSES", "0, 429,502")
        clean_env.setenv("RESILIENT_LLM_TIMEOUT_MS", "45000")

        policy = RetryPolicy.from_env()

        assert policy.max_retries == 5
        assert policy.initial_delay_ms == 250
        assert policy.jitter is False
        assert policy.retryable_statuses == frozenset({0, 429, 502})
        assert policy.timeout_ms == 45000
        assert policy.max_delay_ms == constants.DEFAULT_MAX_DELAY_MS

    def test_custom_prefix(self, clean_env):
        clean_env.setenv("MYAPP_MAX_RETRIES", "1")

        assert RetryPolicy.from_env(prefix="MYAPP_").max_retries == 1

    def test_invalid_value(self, clean_env):
        clean_env.setenv("RESILIENT_LLM_MAX_RETRIES", "many")

        with pytest.raises(ValueError, match="RESILIENT_LLM_MAX_RETRIES"):
            RetryPolicy.from_env()

    def test_invalid_bool(self, clean_env):
        clean_env.setenv("RESILIENT_LLM_JITTER", "maybe")

        with pytest.raises(ValueError):
            RetryPolicy.from_env()


@pytest.mark.unit
class TestRetryContext:
    """Test call context."""

    def test_defaults(self):
        before = time.time()
        context = RetryContext(operation="chat", provider="openai")

        assert context.start_time >= before
        assert context.model is None
        assert context.request_id is None

    def test_elapsed(self):
        context = RetryContext(operation="chat", provider="openai", start_time=time.time() - 1.5)

        assert 1500 <= context.elapsed_ms() < 5000

    def test_immutable(self):
        context = RetryContext(operation="chat", provider="openai")

        with pytest.raises(dataclasses.FrozenInstanceError):
            context.operation = "other"
