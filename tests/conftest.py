"""Shared pytest fixtures for Resilient LLM tests."""

import pytest
from unittest.mock import Mock

from resilient_llm.reliability.cancellation import CancellationToken
from resilient_llm.reliability.policy import RetryContext, RetryEvents, RetryPolicy
from resilient_llm.reliability.retry import ResilientExecutor
from resilient_llm.streaming.reconstructor import StreamReconstructor
from tests.helpers.streaming_mocks import weather_tool_deltas


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests spanning several components")
    config.addinivalue_line("markers", "slow: tests that sleep for real")


@pytest.fixture
def retry_context():
    """Context passed to executor calls."""
    return RetryContext(
        operation="chat",
        provider="openai",
        model="gpt-4o-mini",
        request_id="req-123"
    )


@pytest.fixture
def fast_policy():
    """Policy with no real waiting between attempts."""
    return RetryPolicy(max_retries=2, initial_delay_ms=0, max_delay_ms=0, jitter=False)


@pytest.fixture
def mock_events():
    """RetryEvents whose callbacks are all mocks."""
    return RetryEvents(
        on_retry=Mock(),
        on_timeout=Mock(),
        on_max_retries_exceeded=Mock(),
        on_success=Mock()
    )


@pytest.fixture
def executor():
    """Executor with default configuration."""
    return ResilientExecutor()


@pytest.fixture
def cancel_token():
    """Fresh cancellation token."""
    return CancellationToken()


@pytest.fixture
def reconstructor():
    """Fresh stream reconstructor."""
    return StreamReconstructor()


@pytest.fixture
def weather_deltas():
    """Interleaved tool call deltas."""
    return weather_tool_deltas()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove RESILIENT_LLM_* variables and stop .env loading."""
    import os

    for key in list(os.environ):
        if key.startswith("RESILIENT_LLM_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr("resilient_llm.reliability.policy.load_dotenv", lambda *a, **kw: False)
    return monkeypatch
