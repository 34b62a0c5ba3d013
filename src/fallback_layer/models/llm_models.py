"""
LLM-specific data models for the request/response cycle.

These models are the standardized contract between the orchestrator and
any provider client (Ollama, OpenAI-compatible APIs, ...). They abstract
away provider-specific payloads.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One chat turn sent to a provider."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant", "tool"] = Field(..., description="Message author role")
    content: str = Field(..., description="Message text")


class CompletionRequest(BaseModel):
    """
    Internal request model for a provider call.

    Built by the provider registry from the orchestrator's
    (provider, model, messages, max_tokens, temperature) call.
    """

    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Model name/identifier (e.g., 'qwen2.5:7b', 'gpt-4o-mini')")
    messages: tuple[ChatMessage, ...] = Field(..., min_length=1, description="Conversation to complete")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=2048, ge=1, description="Maximum tokens to generate")
    stop_sequences: Optional[list[str]] = Field(default=None, description="Stop sequences for generation")


class TokenUsage(BaseModel):
    """Token accounting for one provider call."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class ProviderResponse(BaseModel):
    """
    Standardized response from a provider call.

    Contains the generated text plus metadata for usage tracking and logging.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token usage reported by the provider")
    model_version: Optional[str] = Field(default=None, description="Exact model the provider reports")
    finish_reason: Optional[str] = Field(default=None, description="Why generation stopped: 'stop', 'length', ...")
    latency_ms: int = Field(default=0, ge=0, description="Call latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)",
    )


class ModelSelection(BaseModel):
    """Provider/model pair chosen by a model selector."""

    model_config = ConfigDict(frozen=True)

    provider: str
    model: str
