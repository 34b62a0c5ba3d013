"""
Collaborators consumed by the request orchestrator.

Components:
- base: ProviderCaller, RateLimitOracle, UsageTracker, ModelSelector, ErrorLogger protocols
- rate_limit: AlwaysAvailableOracle, CooldownRateLimitOracle
- usage: NullUsageTracker, MetricsUsageTracker
- error_logging: NullErrorLogger, StructlogErrorLogger, CompositeErrorLogger
- selection: PriorityModelSelector
"""

from fallback_layer.collaborators.base import (
    ErrorLogger,
    ModelSelector,
    ProviderCaller,
    RateLimitOracle,
    UsageTracker,
)
from fallback_layer.collaborators.error_logging import (
    CompositeErrorLogger,
    NullErrorLogger,
    StructlogErrorLogger,
)
from fallback_layer.collaborators.rate_limit import AlwaysAvailableOracle, CooldownRateLimitOracle
from fallback_layer.collaborators.selection import PriorityModelSelector
from fallback_layer.collaborators.usage import MetricsUsageTracker, NullUsageTracker, UsageTotals

__all__ = [
    "ErrorLogger",
    "ModelSelector",
    "ProviderCaller",
    "RateLimitOracle",
    "UsageTracker",
    "CompositeErrorLogger",
    "NullErrorLogger",
    "StructlogErrorLogger",
    "AlwaysAvailableOracle",
    "CooldownRateLimitOracle",
    "PriorityModelSelector",
    "MetricsUsageTracker",
    "NullUsageTracker",
    "UsageTotals",
]
