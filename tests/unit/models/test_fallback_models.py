"""
Unit tests for the fallback data models.
"""

import pytest
from pydantic import ValidationError

from fallback_layer.classification.classifier import classify
from fallback_layer.models.enums import ErrorCategory, FallbackType, OutcomeStatus
from fallback_layer.models.error_models import CATEGORY_POLICIES, StructuredError
from fallback_layer.models.fallback_models import (
    FallbackConfiguration,
    FallbackDecision,
    ProviderCandidate,
    ProviderSettings,
    RequestOutcome,
)


def test_category_policy_table_is_complete_and_immutable():
    assert set(CATEGORY_POLICIES) == set(ErrorCategory)
    with pytest.raises(TypeError):
        CATEGORY_POLICIES[ErrorCategory.UNKNOWN] = CATEGORY_POLICIES[ErrorCategory.RATE_LIMIT]


def test_fallback_decision_stop():
    decision = FallbackDecision.stop("done")
    assert decision.should_fallback is False
    assert decision.fallback_type is FallbackType.NONE
    assert decision.wait_ms == 0


def test_provider_candidate_key():
    assert ProviderCandidate("openai", "gpt-4o", True).key == "openai/gpt-4o"


@pytest.mark.parametrize(
    "settings,eligible",
    [
        (ProviderSettings(name="p", has_credentials=True), True),
        (ProviderSettings(name="p", is_local=True), True),
        (ProviderSettings(name="p"), False),
        (ProviderSettings(name="p", has_credentials=True, enabled=False), False),
    ],
)
def test_provider_eligibility(settings, eligible):
    assert settings.is_eligible is eligible


def test_configuration_rejects_unknown_priority_names():
    with pytest.raises(ValidationError):
        FallbackConfiguration(providers={}, provider_priority=("ghost",))


def test_configuration_helpers(fallback_config):
    assert fallback_config.chain_for("openai") == ("gpt-4o", "gpt-4o-mini")
    assert fallback_config.chain_for("missing") == ()
    assert fallback_config.eligible_providers() == ["anthropic", "openai", "ollama"]
    assert fallback_config.is_eligible("google") is False


def test_configuration_is_frozen(fallback_config):
    with pytest.raises(ValidationError):
        fallback_config.max_attempts = 10


def test_outcome_path_must_match_attempts():
    with pytest.raises(ValidationError):
        RequestOutcome(success=False, status=OutcomeStatus.EXHAUSTED, attempts=2, fallback_path=["a/b"])


def test_outcome_success_must_match_status():
    with pytest.raises(ValidationError):
        RequestOutcome(success=True, status=OutcomeStatus.EXHAUSTED)


def test_outcome_serializes_error():
    error = StructuredError.from_classification("429", classify("429"), provider="openai", model="gpt-4o")
    outcome = RequestOutcome(
        success=False,
        status=OutcomeStatus.NO_FALLBACK_AVAILABLE,
        attempts=1,
        fallback_path=["openai/gpt-4o"],
        error=error,
    )

    data = outcome.model_dump(mode="json")

    assert data["status"] == "no_fallback_available"
    assert data["error"]["category"] == "rate_limit"
    assert data["error"]["fallback_hint"] == "switch_provider"
