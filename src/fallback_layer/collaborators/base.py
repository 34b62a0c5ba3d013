"""
Collaborator interfaces consumed by the request orchestrator.

The orchestrator is constructed with concrete implementations of these
protocols. A missing capability is a configuration choice (inject one of
the no-op implementations), never a runtime probe.
"""

from typing import Optional, Protocol, Sequence, runtime_checkable

from fallback_layer.models.error_models import StructuredError
from fallback_layer.models.llm_models import ChatMessage, ModelSelection, ProviderResponse


@runtime_checkable
class ProviderCaller(Protocol):
    """Sends one request to one provider/model."""

    async def call(
        self,
        provider: str,
        model: str,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """
        Execute a completion.

        Returns:
            ProviderResponse with content and usage

        Raises:
            Exception: Any failure; the orchestrator classifies it
        """
        ...


@runtime_checkable
class RateLimitOracle(Protocol):
    """Answers whether a provider/model may be called right now."""

    def is_available(self, provider: str, model: str) -> bool:
        ...

    def percent_remaining(self, provider: str, model: str) -> Optional[float]:
        """Remaining share of the current window (0-100), None when unknown."""
        ...


@runtime_checkable
class UsageTracker(Protocol):
    """Records token usage per provider/model."""

    def record(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        is_error: bool = False,
    ) -> None:
        ...


@runtime_checkable
class ModelSelector(Protocol):
    """Chooses the initial provider/model for a request."""

    async def select_optimal(
        self, task_hint: Optional[str], estimated_tokens: int
    ) -> Optional[ModelSelection]:
        ...


@runtime_checkable
class ErrorLogger(Protocol):
    """Receives every StructuredError. Fire-and-forget."""

    def log(self, error: StructuredError) -> None:
        ...
