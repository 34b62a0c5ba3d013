"""
Data models for the fallback layer.

- enums: ErrorCategory, FallbackType, OutcomeStatus
- error_models: CategoryPolicy table, ClassifiedError, StructuredError
- llm_models: ChatMessage, CompletionRequest, ProviderResponse, TokenUsage
- fallback_models: FallbackConfiguration, FallbackDecision, ProviderCandidate, RequestOutcome
"""

from fallback_layer.models.enums import ErrorCategory, FallbackType, OutcomeStatus
from fallback_layer.models.error_models import (
    CATEGORY_POLICIES,
    CategoryPolicy,
    ClassifiedError,
    StructuredError,
    policy_for,
)
from fallback_layer.models.fallback_models import (
    FallbackConfiguration,
    FallbackDecision,
    ProviderCandidate,
    ProviderSettings,
    RequestOutcome,
    combination_key,
)
from fallback_layer.models.llm_models import (
    ChatMessage,
    CompletionRequest,
    ModelSelection,
    ProviderResponse,
    TokenUsage,
)

__all__ = [
    # Enums
    "ErrorCategory",
    "FallbackType",
    "OutcomeStatus",
    # Errors
    "CATEGORY_POLICIES",
    "CategoryPolicy",
    "ClassifiedError",
    "StructuredError",
    "policy_for",
    # Fallback
    "FallbackConfiguration",
    "FallbackDecision",
    "ProviderCandidate",
    "ProviderSettings",
    "RequestOutcome",
    "combination_key",
    # LLM
    "ChatMessage",
    "CompletionRequest",
    "ModelSelection",
    "ProviderResponse",
    "TokenUsage",
]
