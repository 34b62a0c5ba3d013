"""
Fallback data models: configuration, decisions, candidates and outcomes.

FallbackConfiguration is the immutable snapshot the resolver and the
orchestrator are constructed with. FallbackDecision and ProviderCandidate
are single-step values with no lifecycle beyond one loop iteration.
RequestOutcome is the terminal value handed back to the caller.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from fallback_layer.models.enums import FallbackType, OutcomeStatus
from fallback_layer.models.error_models import StructuredError
from fallback_layer.models.llm_models import TokenUsage


def combination_key(provider: str, model: str) -> str:
    """Render a provider/model pair the way it appears in fallback paths."""
    return f"{provider}/{model}"


@dataclass(frozen=True)
class FallbackDecision:
    """
    Output of the decision policy for one failed attempt.

    Attributes:
        should_fallback: Whether another attempt should be made
        fallback_type: Recovery move (NONE when should_fallback is False)
        wait_ms: How long to wait before the next attempt
        reason: Human-readable explanation for logs
    """

    should_fallback: bool
    fallback_type: FallbackType
    wait_ms: int
    reason: str

    @classmethod
    def stop(cls, reason: str) -> "FallbackDecision":
        return cls(False, FallbackType.NONE, 0, reason)


@dataclass(frozen=True)
class ProviderCandidate:
    """One fallback target produced by the chain resolver."""

    provider: str
    model: str
    is_new_provider: bool = False

    @property
    def key(self) -> str:
        return combination_key(self.provider, self.model)


class ProviderSettings(BaseModel):
    """Static description of one provider inside the fallback configuration."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    models: tuple[str, ...] = Field(
        default=(),
        description="Ordered model chain, highest capability first, economy last",
    )
    enabled: bool = True
    has_credentials: bool = False
    is_local: bool = Field(default=False, description="Local providers need no credentials")

    @property
    def is_eligible(self) -> bool:
        """Provider can be targeted: enabled and either local or credentialed."""
        return self.enabled and (self.is_local or self.has_credentials)


class FallbackConfiguration(BaseModel):
    """
    Immutable fallback configuration snapshot.

    Attributes:
        providers: Provider name -> ProviderSettings
        provider_priority: Global order used for cross-provider failover
        max_attempts: Default attempt budget per request
        retry_delay_ms: Base delay for simple (non-fallback) retries
    """

    model_config = ConfigDict(frozen=True)

    providers: dict[str, ProviderSettings] = Field(default_factory=dict)
    provider_priority: tuple[str, ...] = Field(default=())
    max_attempts: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=1000, ge=0)

    @model_validator(mode="after")
    def _check_priority(self) -> "FallbackConfiguration":
        unknown = [name for name in self.provider_priority if name not in self.providers]
        if unknown:
            raise ValueError(f"provider_priority references unconfigured providers: {unknown}")
        return self

    def chain_for(self, provider: str) -> tuple[str, ...]:
        """Model chain for a provider (empty when the provider is unknown)."""
        settings = self.providers.get(provider)
        return settings.models if settings else ()

    def is_eligible(self, provider: str) -> bool:
        settings = self.providers.get(provider)
        return bool(settings and settings.is_eligible)

    def eligible_providers(self) -> list[str]:
        """Providers in priority order that are enabled and credentialed."""
        return [name for name in self.provider_priority if self.is_eligible(name)]


class RequestOutcome(BaseModel):
    """
    Terminal result of one orchestrated request.

    Callers distinguish success from failure via `success`/`status`, never
    via exceptions. `fallback_path` lists every attempted provider/model pair
    in order, so len(fallback_path) == attempts.
    """

    success: bool
    status: OutcomeStatus
    content: Optional[str] = None
    usage: Optional[TokenUsage] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    attempts: int = Field(default=0, ge=0)
    fallback_path: list[str] = Field(default_factory=list)
    error: Optional[StructuredError] = None
    total_latency_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_invariants(self) -> "RequestOutcome":
        if len(self.fallback_path) != self.attempts:
            raise ValueError("fallback_path length must equal attempts")
        if self.success != (self.status is OutcomeStatus.SUCCESS):
            raise ValueError("success flag must match status")
        return self
