"""
FastAPI dependency injection for the fallback layer.

Provides singleton instances of the long-lived pieces (provider registry,
rate limit oracle, usage tracker) and a factory for the orchestrator.
"""

from functools import lru_cache

from fastapi import Depends

from fallback_layer.collaborators.error_logging import CompositeErrorLogger, StructlogErrorLogger
from fallback_layer.collaborators.rate_limit import CooldownRateLimitOracle
from fallback_layer.collaborators.selection import PriorityModelSelector
from fallback_layer.collaborators.usage import MetricsUsageTracker
from fallback_layer.config import Settings, settings
from fallback_layer.llm.registry import ProviderRegistry
from fallback_layer.models.fallback_models import FallbackConfiguration
from fallback_layer.retry.orchestrator import RequestOrchestrator
from fallback_layer.retry.policy import FallbackDecisionPolicy


@lru_cache()
def get_settings() -> Settings:
    """Get settings singleton."""
    return settings


@lru_cache()
def get_fallback_config() -> FallbackConfiguration:
    """
    Get the immutable fallback configuration.

    Built once from settings; a restart picks up changed environment.
    Providers without a registered client are disabled.
    """
    return get_settings().fallback_configuration(get_provider_registry().providers)


@lru_cache()
def get_rate_limit_oracle() -> CooldownRateLimitOracle:
    """
    Get singleton rate limit oracle.

    Shared across requests so a 429 seen by one request steers the next
    ones away from the same provider/model until the cooldown expires.
    """
    return CooldownRateLimitOracle()


@lru_cache()
def get_usage_tracker() -> MetricsUsageTracker:
    """Get singleton usage tracker (Prometheus counters plus in-memory totals)."""
    return MetricsUsageTracker()


@lru_cache()
def get_provider_registry() -> ProviderRegistry:
    """
    Get singleton provider registry with connection pooling.

    Each client keeps its own httpx connection pool for the lifetime of
    the process.
    """
    return ProviderRegistry.from_settings(get_settings())


def get_orchestrator(
    registry: ProviderRegistry = Depends(get_provider_registry),
    config: FallbackConfiguration = Depends(get_fallback_config),
    oracle: CooldownRateLimitOracle = Depends(get_rate_limit_oracle),
    usage_tracker: MetricsUsageTracker = Depends(get_usage_tracker),
    settings: Settings = Depends(get_settings),
) -> RequestOrchestrator:
    """
    Create request orchestrator with injected dependencies.

    Note: RequestOrchestrator is NOT cached because it's lightweight and
    keeps no per-request state. All heavy resources are singletons.
    """
    return RequestOrchestrator(
        registry,
        config,
        policy=FallbackDecisionPolicy(settings.backoff_policy()),
        oracle=oracle,
        usage_tracker=usage_tracker,
        model_selector=PriorityModelSelector(config, oracle),
        error_logger=CompositeErrorLogger([StructlogErrorLogger(), oracle]),
        default_max_tokens=settings.LLM_MAX_TOKENS,
        default_temperature=settings.LLM_TEMPERATURE,
        auto_fallback=settings.AUTO_FALLBACK,
        cross_provider=settings.CROSS_PROVIDER_FALLBACK,
    )
