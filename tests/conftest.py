"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from fallback_layer.config import Settings
from fallback_layer.models.fallback_models import FallbackConfiguration, ProviderSettings
from fallback_layer.models.llm_models import ChatMessage


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.MAX_ATTEMPTS = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="LLM Fallback Layer (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Fallback Engine ===
        MAX_ATTEMPTS=3,
        RETRY_DELAY_MS=1000,
        AUTO_FALLBACK=True,
        CROSS_PROVIDER_FALLBACK=True,

        # === Providers ===
        PROVIDER_PRIORITY=["anthropic", "openai", "ollama"],
        MODEL_CHAINS={
            "anthropic": ["claude-opus", "claude-sonnet", "claude-haiku"],
            "openai": ["gpt-4o", "gpt-4o-mini"],
            "ollama": ["llama3.2:3b"],
        },
        DISABLED_PROVIDERS=[],
        LOCAL_PROVIDERS=["ollama"],
        ANTHROPIC_API_KEY="sk-ant-test",
        OPENAI_API_KEY="sk-test",
        GOOGLE_API_KEY=None,
        MISTRAL_API_KEY=None,
        GROQ_API_KEY=None,

        # === Monitoring ===
        PROMETHEUS_ENABLED=False,  # Disable metrics endpoint in tests unless explicitly needed
    )


@pytest.fixture
def fallback_config() -> FallbackConfiguration:
    """Three-provider configuration: two credentialed cloud providers, one
    uncredentialed (ineligible) provider and one local provider."""
    return FallbackConfiguration(
        providers={
            "anthropic": ProviderSettings(
                name="anthropic",
                models=("claude-opus", "claude-sonnet", "claude-haiku"),
                has_credentials=True,
            ),
            "openai": ProviderSettings(
                name="openai",
                models=("gpt-4o", "gpt-4o-mini"),
                has_credentials=True,
            ),
            "google": ProviderSettings(
                name="google",
                models=("gemini-pro",),
                has_credentials=False,
            ),
            "ollama": ProviderSettings(
                name="ollama",
                models=("llama3.2:3b",),
                is_local=True,
            ),
        },
        provider_priority=("anthropic", "openai", "google", "ollama"),
        max_attempts=3,
        retry_delay_ms=1000,
    )


@pytest.fixture
def user_messages() -> list[ChatMessage]:
    """Minimal single-turn conversation."""
    return [ChatMessage(role="user", content="Summarize the release notes.")]
