"""
API-specific request and response models for FastAPI endpoints.

The completion endpoint returns the core RequestOutcome model directly;
these models cover the request body and the informational endpoints.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from fallback_layer.models.llm_models import ChatMessage


class CompletionApiRequest(BaseModel):
    """Request body for POST /v1/completions."""

    messages: list[ChatMessage] = Field(
        description="Conversation to send to the provider",
        min_length=1,
    )
    provider: Optional[str] = Field(
        default=None,
        description="Initial provider (selected by priority when omitted)",
        examples=["anthropic"],
    )
    model: Optional[str] = Field(
        default=None,
        description="Initial model (head of the provider's chain when omitted)",
        examples=["claude-sonnet-4-5"],
    )
    max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        le=20,
        description="Attempt budget (server default when omitted)",
    )
    auto_fallback: Optional[bool] = Field(
        default=None,
        description="Allow model/provider switching",
    )
    cross_provider: Optional[bool] = Field(
        default=None,
        description="Allow switching to a different provider",
    )
    max_tokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    task_hint: Optional[str] = Field(
        default=None,
        description="Free-form hint for model selection",
        examples=["code", "summarize"],
    )


class ProviderInfo(BaseModel):
    """Configuration snapshot of one provider (no credential values)."""

    name: str
    models: list[str]
    enabled: bool
    has_credentials: bool
    is_local: bool
    eligible: bool
    rate_limit_remaining_pct: Optional[float] = None


class ProvidersResponse(BaseModel):
    """Response for GET /v1/providers."""

    provider_priority: list[str] = Field(description="Global provider order for cross-provider fallback")
    max_attempts: int
    auto_fallback: bool
    cross_provider: bool
    providers: list[ProviderInfo]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(
        description="Overall health status",
        examples=["healthy", "degraded", "unhealthy"]
    )
    version: str = Field(
        description="Fallback layer version",
        examples=["0.1.0"]
    )
    services: dict[str, str] = Field(
        description="Per-provider health status",
        examples=[{"ollama": "ok", "openai": "unreachable"}]
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp (UTC)"
    )


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(
        description="Error code or type",
        examples=["fallback_error", "internal_error"]
    )
    message: str = Field(description="Human-readable error message")
    details: Optional[dict] = Field(default=None)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
