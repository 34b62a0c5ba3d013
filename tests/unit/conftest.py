"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fallback_layer.models.llm_models import ProviderResponse, TokenUsage


class FakeOracle:
    """Rate limit oracle blocking a fixed set of provider/model pairs."""

    def __init__(self, blocked=()):
        self.blocked = set(blocked)

    def is_available(self, provider, model):
        return (provider, model) not in self.blocked

    def percent_remaining(self, provider, model):
        return 0.0 if (provider, model) in self.blocked else 100.0


def make_response(content: str = "ok", input_tokens: int = 12, output_tokens: int = 34) -> ProviderResponse:
    """ProviderResponse with fixed usage."""
    return ProviderResponse(
        content=content,
        usage=TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens),
        model_version="test-model",
        finish_reason="stop",
        latency_ms=5,
    )


@pytest.fixture
def mock_provider_response() -> ProviderResponse:
    """Successful provider response."""
    return make_response()


@pytest.fixture
def mock_caller(mock_provider_response):
    """ProviderCaller whose call() succeeds immediately.

    Set mock_caller.call.side_effect to a list of exceptions/responses to
    script a sequence of attempts.
    """
    caller = MagicMock()
    caller.call = AsyncMock(return_value=mock_provider_response)
    return caller


@pytest.fixture
def no_sleep():
    """Async sleep stand-in that returns immediately and records waits."""
    return AsyncMock(return_value=None)


@pytest.fixture
def recording_error_logger():
    """ErrorLogger that keeps every StructuredError it receives."""
    error_logger = MagicMock()
    error_logger.log = MagicMock(return_value=None)
    return error_logger


@pytest.fixture
def response_factory():
    """Build ProviderResponse objects: response_factory("text")."""
    return make_response


@pytest.fixture
def oracle_factory():
    """Build a FakeOracle: oracle_factory(blocked={("anthropic", "claude-sonnet")})."""
    return FakeOracle
