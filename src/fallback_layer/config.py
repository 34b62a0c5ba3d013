"""
Configuration settings for the LLM Fallback Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development. Complex values (lists, MODEL_CHAINS)
are given as JSON, e.g. PROVIDER_PRIORITY='["ollama", "anthropic"]'.
"""

from typing import TYPE_CHECKING, Iterable, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from fallback_layer.models.fallback_models import FallbackConfiguration, ProviderSettings

if TYPE_CHECKING:
    from fallback_layer.retry.policy import BackoffPolicy


DEFAULT_MODEL_CHAINS: dict[str, list[str]] = {
    "anthropic": ["claude-opus-4-1", "claude-sonnet-4-5", "claude-3-5-haiku-latest"],
    "openai": ["gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"],
    "google": ["gemini-2.5-pro", "gemini-2.5-flash", "gemini-2.0-flash-lite"],
    "mistral": ["mistral-large-latest", "mistral-small-latest", "open-mistral-nemo"],
    "groq": ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"],
    "ollama": ["qwen2.5-coder:32b", "llama3.2:3b", "qwen2.5:3b"],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "LLM Fallback Layer"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # === Fallback Engine ===
    MAX_ATTEMPTS: int = 3
    RETRY_DELAY_MS: int = 1000  # Base delay for simple retries (auto fallback off)
    AUTO_FALLBACK: bool = True
    CROSS_PROVIDER_FALLBACK: bool = True

    # === Providers ===
    PROVIDER_PRIORITY: list[str] = ["anthropic", "openai", "google", "mistral", "groq", "ollama"]
    MODEL_CHAINS: dict[str, list[str]] = DEFAULT_MODEL_CHAINS
    DISABLED_PROVIDERS: list[str] = []
    LOCAL_PROVIDERS: list[str] = ["ollama"]  # No API key required

    # === Credentials (presence only is exported to the engine) ===
    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    GOOGLE_API_KEY: Optional[str] = None
    MISTRAL_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None

    # === Provider Endpoints ===
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    MISTRAL_BASE_URL: str = "https://api.mistral.ai/v1"
    PROVIDER_TIMEOUT: int = 120  # seconds

    # === LLM Generation Parameters ===
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 4096

    # === Backoff Tuning (empirical defaults, not load-tested optima) ===
    SERVER_ERROR_BACKOFF_MULTIPLIER: float = 1.5
    RATE_LIMIT_MAX_WAIT_MS: int = 60_000
    OVERLOADED_MAX_WAIT_MS: int = 30_000
    SERVER_ERROR_MAX_WAIT_MS: int = 30_000
    NETWORK_ERROR_MAX_WAIT_MS: int = 15_000
    SIMPLE_RETRY_MAX_WAIT_MS: int = 120_000
    UNKNOWN_ERROR_WAIT_STEP_MS: int = 1_000

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True

    def api_key_for(self, provider: str) -> Optional[str]:
        """Return the configured API key for a provider, if any."""
        return getattr(self, f"{provider.upper()}_API_KEY", None) or None

    def fallback_configuration(self, served_providers: Optional[Iterable[str]] = None) -> FallbackConfiguration:
        """
        Build the immutable fallback configuration snapshot.

        Providers named in PROVIDER_PRIORITY or MODEL_CHAINS are included;
        API key values never leave Settings, only their presence does.

        Args:
            served_providers: Providers that have a client to call. When
                given, every other provider is disabled so selection and
                fallback never land on a provider nothing can reach.
        """
        names = list(dict.fromkeys([*self.PROVIDER_PRIORITY, *self.MODEL_CHAINS]))
        disabled = {name.lower() for name in self.DISABLED_PROVIDERS}
        local = {name.lower() for name in self.LOCAL_PROVIDERS}
        served = None if served_providers is None else {name.lower() for name in served_providers}

        providers = {
            name: ProviderSettings(
                name=name,
                models=tuple(self.MODEL_CHAINS.get(name, [])),
                enabled=name.lower() not in disabled and (served is None or name.lower() in served),
                has_credentials=self.api_key_for(name) is not None,
                is_local=name.lower() in local,
            )
            for name in names
        }
        return FallbackConfiguration(
            providers=providers,
            provider_priority=tuple(dict.fromkeys(self.PROVIDER_PRIORITY)),
            max_attempts=self.MAX_ATTEMPTS,
            retry_delay_ms=self.RETRY_DELAY_MS,
        )

    def backoff_policy(self) -> "BackoffPolicy":
        """Build the tunable backoff constants for the decision policy."""
        from fallback_layer.retry.policy import BackoffPolicy

        return BackoffPolicy(
            rate_limit_max_wait_ms=self.RATE_LIMIT_MAX_WAIT_MS,
            overloaded_max_wait_ms=self.OVERLOADED_MAX_WAIT_MS,
            server_error_multiplier=self.SERVER_ERROR_BACKOFF_MULTIPLIER,
            server_error_max_wait_ms=self.SERVER_ERROR_MAX_WAIT_MS,
            network_error_max_wait_ms=self.NETWORK_ERROR_MAX_WAIT_MS,
            unknown_wait_step_ms=self.UNKNOWN_ERROR_WAIT_STEP_MS,
            simple_retry_max_wait_ms=self.SIMPLE_RETRY_MAX_WAIT_MS,
        )


# Global settings instance
settings = Settings()
