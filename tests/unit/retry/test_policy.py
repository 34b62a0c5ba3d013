"""
Unit tests for FallbackDecisionPolicy and BackoffPolicy.
"""

import pytest

from fallback_layer.classification.classifier import classify
from fallback_layer.models.enums import ErrorCategory, FallbackType
from fallback_layer.models.error_models import ClassifiedError, policy_for
from fallback_layer.retry.policy import BackoffPolicy, FallbackDecisionPolicy


def classified(category: ErrorCategory, retry_after_ms: int | None = None) -> ClassifiedError:
    """ClassifiedError with policy defaults and an optional retry-after override."""
    policy = policy_for(category)
    return ClassifiedError(
        category=category,
        recoverable=policy.recoverable,
        retry_after_ms=policy.base_retry_after_ms if retry_after_ms is None else retry_after_ms,
        fallback_hint=policy.fallback_hint,
    )


@pytest.fixture
def policy() -> FallbackDecisionPolicy:
    return FallbackDecisionPolicy()


# ============================================================================
# Budget and Recoverability
# ============================================================================


def test_budget_exhausted_stops_even_for_recoverable(policy):
    """attempt >= max_attempts always stops."""
    decision = policy.decide(classified(ErrorCategory.SERVER_ERROR), 3, 3, True)
    assert decision.should_fallback is False
    assert decision.fallback_type is FallbackType.NONE
    assert "budget" in decision.reason


def test_budget_check_precedes_auth_switch(policy):
    decision = policy.decide(classified(ErrorCategory.AUTH_ERROR), 2, 2, True)
    assert decision.should_fallback is False


@pytest.mark.parametrize("category", [ErrorCategory.VALIDATION_ERROR, ErrorCategory.UNKNOWN])
def test_non_recoverable_stops(policy, category):
    decision = policy.decide(classified(category), 1, 3, True)
    assert decision.should_fallback is False
    assert decision.wait_ms == 0


def test_auth_error_switches_provider_when_cross_provider_allowed(policy):
    """Credentials differ per provider, so auth failures move on immediately."""
    decision = policy.decide(classified(ErrorCategory.AUTH_ERROR), 1, 3, True)
    assert decision.should_fallback is True
    assert decision.fallback_type is FallbackType.SWITCH_PROVIDER
    assert decision.wait_ms == 0


def test_auth_error_stops_without_cross_provider(policy):
    decision = policy.decide(classified(ErrorCategory.AUTH_ERROR), 1, 3, False)
    assert decision.should_fallback is False


# ============================================================================
# Recoverable Categories
# ============================================================================


def test_rate_limit_switches_provider_with_capped_wait(policy):
    decision = policy.decide(classified(ErrorCategory.RATE_LIMIT), 1, 3, True)
    assert decision.fallback_type is FallbackType.SWITCH_PROVIDER
    assert decision.wait_ms == 30_000

    long_hint = policy.decide(classified(ErrorCategory.RATE_LIMIT, retry_after_ms=600_000), 1, 3, True)
    assert long_hint.wait_ms == 60_000


def test_rate_limit_switches_model_without_cross_provider(policy):
    decision = policy.decide(classified(ErrorCategory.RATE_LIMIT), 1, 3, False)
    assert decision.fallback_type is FallbackType.SWITCH_MODEL


def test_overloaded_switches_model(policy):
    decision = policy.decide(classified(ErrorCategory.OVERLOADED), 1, 3, True)
    assert decision.fallback_type is FallbackType.SWITCH_MODEL
    assert decision.wait_ms == 5_000

    capped = policy.decide(classified(ErrorCategory.OVERLOADED, retry_after_ms=45_000), 1, 3, True)
    assert capped.wait_ms == 30_000


@pytest.mark.parametrize(
    "attempt,expected",
    [
        (1, 3_000),   # 2000 * 1.5
        (2, 4_500),   # 2000 * 1.5^2
        (3, 6_750),   # 2000 * 1.5^3
    ],
)
def test_server_error_retries_with_exponential_backoff(policy, attempt, expected):
    decision = policy.decide(classified(ErrorCategory.SERVER_ERROR), attempt, 10, True)
    assert decision.fallback_type is FallbackType.RETRY
    assert decision.wait_ms == expected


def test_server_error_backoff_is_capped(policy):
    decision = policy.decide(classified(ErrorCategory.SERVER_ERROR), 20, 50, True)
    assert decision.wait_ms == 30_000


@pytest.mark.parametrize("attempt,expected", [(1, 1_000), (2, 2_000), (5, 5_000), (30, 15_000)])
def test_network_error_retries_with_linear_backoff(policy, attempt, expected):
    decision = policy.decide(classified(ErrorCategory.NETWORK_ERROR), attempt, 50, True)
    assert decision.fallback_type is FallbackType.RETRY
    assert decision.wait_ms == expected


def test_decision_from_real_classification(policy):
    """Classifier output feeds straight into the policy."""
    decision = policy.decide(classify("429 Too Many Requests, retry after 12s"), 1, 3, True)
    assert decision.fallback_type is FallbackType.SWITCH_PROVIDER
    assert decision.wait_ms == 12_000


# ============================================================================
# Tunable Backoff
# ============================================================================


def test_custom_backoff_policy_is_used():
    policy = FallbackDecisionPolicy(
        BackoffPolicy(rate_limit_max_wait_ms=5_000, server_error_multiplier=2.0, server_error_max_wait_ms=100_000)
    )
    assert policy.decide(classified(ErrorCategory.RATE_LIMIT), 1, 3, True).wait_ms == 5_000
    assert policy.decide(classified(ErrorCategory.SERVER_ERROR), 2, 3, True).wait_ms == 8_000


@pytest.mark.parametrize("attempt,expected", [(1, 1_000), (2, 2_000), (3, 4_000), (10, 120_000)])
def test_simple_retry_wait(attempt, expected):
    """Simple retries (no fallback) double the delay per attempt, capped."""
    assert BackoffPolicy().simple_retry_wait_ms(1_000, attempt) == expected


# ============================================================================
# Recoverable Categories Without a Dedicated Rule
# ============================================================================


def recoverable_unknown() -> ClassifiedError:
    return ClassifiedError(
        category=ErrorCategory.UNKNOWN,
        recoverable=True,
        retry_after_ms=0,
        fallback_hint=FallbackType.NONE,
    )


@pytest.mark.parametrize("attempt,expected_wait_ms", [(1, 1000), (2, 2000)])
def test_recoverable_unlisted_category_retries_with_linear_wait(policy, attempt, expected_wait_ms):
    decision = policy.decide(recoverable_unknown(), attempt, 5, True)

    assert decision.should_fallback is True
    assert decision.fallback_type is FallbackType.RETRY
    assert decision.wait_ms == expected_wait_ms


def test_recoverable_unlisted_category_uses_configured_step():
    policy = FallbackDecisionPolicy(BackoffPolicy(unknown_wait_step_ms=250))

    decision = policy.decide(recoverable_unknown(), 3, 5, False)

    assert decision.fallback_type is FallbackType.RETRY
    assert decision.wait_ms == 750
