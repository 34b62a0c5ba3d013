"""
Error data models for the fallback layer.

ClassifiedError is the lightweight, per-failure value consumed by the
decision policy. StructuredError is the richer, caller-visible record
built once per failed attempt and returned as the terminal error.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from fallback_layer.models.enums import ErrorCategory, FallbackType


@dataclass(frozen=True)
class CategoryPolicy:
    """
    Static policy metadata attached to an ErrorCategory.

    Attributes:
        recoverable: Whether another attempt can plausibly succeed
        base_retry_after_ms: Suggested wait when the error carries no hint
        fallback_hint: Preferred recovery move for this category
    """

    recoverable: bool
    base_retry_after_ms: int
    fallback_hint: FallbackType


CATEGORY_POLICIES: Mapping[ErrorCategory, CategoryPolicy] = MappingProxyType(
    {
        ErrorCategory.RATE_LIMIT: CategoryPolicy(True, 30_000, FallbackType.SWITCH_PROVIDER),
        ErrorCategory.OVERLOADED: CategoryPolicy(True, 5_000, FallbackType.SWITCH_MODEL),
        ErrorCategory.AUTH_ERROR: CategoryPolicy(False, 0, FallbackType.SWITCH_PROVIDER),
        ErrorCategory.SERVER_ERROR: CategoryPolicy(True, 2_000, FallbackType.RETRY),
        ErrorCategory.NETWORK_ERROR: CategoryPolicy(True, 1_000, FallbackType.RETRY),
        ErrorCategory.VALIDATION_ERROR: CategoryPolicy(False, 0, FallbackType.NONE),
        ErrorCategory.UNKNOWN: CategoryPolicy(False, 0, FallbackType.NONE),
    }
)


def policy_for(category: ErrorCategory) -> CategoryPolicy:
    """Return the static policy entry for a category."""
    return CATEGORY_POLICIES[category]


@dataclass(frozen=True)
class ClassifiedError:
    """
    Result of classifying one raw failure.

    Attributes:
        category: Matched error category (UNKNOWN when nothing matched)
        recoverable: Copied from the category policy
        retry_after_ms: Hinted wait from the message, else the policy base
        fallback_hint: Copied from the category policy
        matched_signal: Pattern that matched, None for UNKNOWN
    """

    category: ErrorCategory
    recoverable: bool
    retry_after_ms: int
    fallback_hint: FallbackType
    matched_signal: Optional[str] = None


class StructuredError(BaseModel):
    """
    Caller-visible record of one failed attempt.

    Built by the orchestrator for every failure, handed to the error logger,
    and returned on the RequestOutcome when it is the last failure.
    """

    model_config = ConfigDict(frozen=True)

    message: str = Field(..., description="Raw failure message")
    operation: str = Field(default="provider_call", description="Operation that failed")
    provider: Optional[str] = Field(default=None, description="Provider attempted")
    model: Optional[str] = Field(default=None, description="Model attempted")
    category: ErrorCategory = Field(..., description="Classified category")
    recoverable: bool = Field(..., description="Whether the category is recoverable")
    retry_after_ms: int = Field(default=0, ge=0, description="Suggested wait before retrying")
    fallback_hint: FallbackType = Field(default=FallbackType.NONE, description="Preferred recovery move")
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the failure was recorded",
    )
    context: dict[str, Any] = Field(default_factory=dict, description="Attempt context (attempt number, status, ...)")
    origin_type: Optional[str] = Field(default=None, description="Exception type name, if any")
    inner_message: Optional[str] = Field(default=None, description="Chained cause message, if any")

    @classmethod
    def from_classification(
        cls,
        message: str,
        classified: ClassifiedError,
        *,
        operation: str = "provider_call",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
        origin_type: Optional[str] = None,
        inner_message: Optional[str] = None,
    ) -> "StructuredError":
        """Build a StructuredError from a classification result."""
        return cls(
            message=message,
            operation=operation,
            provider=provider,
            model=model,
            category=classified.category,
            recoverable=classified.recoverable,
            retry_after_ms=classified.retry_after_ms,
            fallback_hint=classified.fallback_hint,
            context=dict(context or {}),
            origin_type=origin_type,
            inner_message=inner_message,
        )

    def to_log_fields(self) -> dict[str, Any]:
        """Flatten into keyword fields for structured logging."""
        return {
            "error_message": self.message,
            "operation": self.operation,
            "provider": self.provider,
            "model": self.model,
            "category": self.category.value,
            "recoverable": self.recoverable,
            "retry_after_ms": self.retry_after_ms,
            "fallback_hint": self.fallback_hint.value,
            "origin_type": self.origin_type,
            "inner_message": self.inner_message,
            **{f"ctx_{key}": value for key, value in self.context.items()},
        }
