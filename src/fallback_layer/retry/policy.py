"""
Fallback decision policy.

Given a classified error and the attempt budget, decides whether to stop,
retry in place, switch model, or switch provider, and how long to wait.

Decision table (recoverable errors):
    RATE_LIMIT     -> SWITCH_PROVIDER (SWITCH_MODEL without cross-provider),
                      wait min(retry_after, 60s)
    OVERLOADED     -> SWITCH_MODEL, wait min(retry_after, 30s)
    SERVER_ERROR   -> RETRY, wait min(retry_after * 1.5^attempt, 30s)
    NETWORK_ERROR  -> RETRY, wait min(retry_after * attempt, 15s)
    other          -> RETRY, wait 1s * attempt

Non-recoverable errors stop, except AUTH_ERROR with cross-provider
permission: credentials differ per provider, so it switches provider
with no wait.

The multiplier and caps are empirical defaults; BackoffPolicy makes them
tunable from Settings.
"""

from dataclasses import dataclass

import structlog

from fallback_layer.models.enums import ErrorCategory, FallbackType
from fallback_layer.models.error_models import ClassifiedError
from fallback_layer.models.fallback_models import FallbackDecision


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    """Wait caps and multipliers used by the decision policy."""

    rate_limit_max_wait_ms: int = 60_000
    overloaded_max_wait_ms: int = 30_000
    server_error_multiplier: float = 1.5
    server_error_max_wait_ms: int = 30_000
    network_error_max_wait_ms: int = 15_000
    unknown_wait_step_ms: int = 1_000
    simple_retry_max_wait_ms: int = 120_000

    def simple_retry_wait_ms(self, retry_delay_ms: int, attempt: int) -> int:
        """Exponential backoff for retries without fallback: delay * 2^(attempt-1)."""
        return int(min(retry_delay_ms * 2 ** max(attempt - 1, 0), self.simple_retry_max_wait_ms))


class FallbackDecisionPolicy:
    """Pure decision function over a classified error and the attempt budget."""

    def __init__(self, backoff: BackoffPolicy | None = None):
        self.backoff = backoff or BackoffPolicy()

    def decide(
        self,
        error: ClassifiedError,
        attempt: int,
        max_attempts: int,
        allow_cross_provider: bool,
    ) -> FallbackDecision:
        """
        Decide the next move after a failed attempt.

        Args:
            error: Classification of the failure
            attempt: 1-based number of the attempt that just failed
            max_attempts: Attempt budget for the request
            allow_cross_provider: Whether switching provider is permitted

        Returns:
            FallbackDecision
        """
        decision = self._decide(error, attempt, max_attempts, allow_cross_provider)
        logger.debug(
            "Fallback decision",
            category=error.category.value,
            attempt=attempt,
            max_attempts=max_attempts,
            should_fallback=decision.should_fallback,
            fallback_type=decision.fallback_type.value,
            wait_ms=decision.wait_ms,
            reason=decision.reason,
        )
        return decision

    def _decide(
        self,
        error: ClassifiedError,
        attempt: int,
        max_attempts: int,
        allow_cross_provider: bool,
    ) -> FallbackDecision:
        if attempt >= max_attempts:
            return FallbackDecision.stop(f"budget exhausted ({attempt}/{max_attempts} attempts)")

        if not error.recoverable:
            if error.category is ErrorCategory.AUTH_ERROR and allow_cross_provider:
                return FallbackDecision(
                    True,
                    FallbackType.SWITCH_PROVIDER,
                    0,
                    "auth error: credentials may differ on another provider",
                )
            return FallbackDecision.stop(f"non-recoverable {error.category.value}")

        backoff = self.backoff
        category = error.category

        if category is ErrorCategory.RATE_LIMIT:
            fallback_type = FallbackType.SWITCH_PROVIDER if allow_cross_provider else FallbackType.SWITCH_MODEL
            wait_ms = min(error.retry_after_ms, backoff.rate_limit_max_wait_ms)
            return FallbackDecision(True, fallback_type, int(wait_ms), "rate limited")

        if category is ErrorCategory.OVERLOADED:
            wait_ms = min(error.retry_after_ms, backoff.overloaded_max_wait_ms)
            return FallbackDecision(True, FallbackType.SWITCH_MODEL, int(wait_ms), "provider overloaded")

        if category is ErrorCategory.SERVER_ERROR:
            wait_ms = min(
                error.retry_after_ms * backoff.server_error_multiplier ** attempt,
                backoff.server_error_max_wait_ms,
            )
            return FallbackDecision(True, FallbackType.RETRY, int(wait_ms), "server error, exponential backoff")

        if category is ErrorCategory.NETWORK_ERROR:
            wait_ms = min(error.retry_after_ms * attempt, backoff.network_error_max_wait_ms)
            return FallbackDecision(True, FallbackType.RETRY, int(wait_ms), "network error, linear backoff")

        return FallbackDecision(
            True,
            FallbackType.RETRY,
            backoff.unknown_wait_step_ms * attempt,
            f"recoverable {category.value}, linear backoff",
        )
