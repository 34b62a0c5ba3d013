"""
Unit tests for usage trackers, error loggers and the model selector.
"""

from unittest.mock import MagicMock

import pytest

from fallback_layer.classification.classifier import classify
from fallback_layer.collaborators.base import ErrorLogger, ModelSelector, UsageTracker
from fallback_layer.collaborators.error_logging import (
    CompositeErrorLogger,
    NullErrorLogger,
    StructlogErrorLogger,
)
from fallback_layer.collaborators.rate_limit import AlwaysAvailableOracle
from fallback_layer.collaborators.selection import PriorityModelSelector
from fallback_layer.collaborators.usage import MetricsUsageTracker, NullUsageTracker, UsageTotals
from fallback_layer.models.error_models import StructuredError
from fallback_layer.models.llm_models import ModelSelection


@pytest.fixture
def sample_error() -> StructuredError:
    return StructuredError.from_classification(
        "503 overloaded",
        classify("503 overloaded"),
        provider="anthropic",
        model="claude-opus",
        context={"attempt": 1},
    )


# ============================================================================
# Usage Trackers
# ============================================================================


def test_null_usage_tracker():
    tracker = NullUsageTracker()
    assert isinstance(tracker, UsageTracker)
    assert tracker.record("openai", "gpt-4o", 10, 20) is None


def test_metrics_usage_tracker_accumulates():
    tracker = MetricsUsageTracker()
    tracker.record("openai", "gpt-4o", 10, 20)
    tracker.record("openai", "gpt-4o", 5, 5)
    tracker.record("openai", "gpt-4o", 0, 0, is_error=True)
    tracker.record("ollama", "llama3.2:3b", 1, 2)

    totals = tracker.totals()

    assert totals["openai/gpt-4o"] == UsageTotals(requests=3, errors=1, input_tokens=15, output_tokens=25)
    assert totals["ollama/llama3.2:3b"].requests == 1


def test_metrics_usage_tracker_totals_is_a_snapshot():
    tracker = MetricsUsageTracker()
    tracker.record("openai", "gpt-4o", 1, 1)

    snapshot = tracker.totals()
    snapshot["openai/gpt-4o"].requests = 99

    assert tracker.totals()["openai/gpt-4o"].requests == 1


# ============================================================================
# Error Loggers
# ============================================================================


def test_null_error_logger(sample_error):
    assert isinstance(NullErrorLogger(), ErrorLogger)
    assert NullErrorLogger().log(sample_error) is None


def test_structlog_error_logger_does_not_raise(sample_error):
    StructlogErrorLogger().log(sample_error)


def test_composite_logger_fans_out(sample_error):
    first, second = MagicMock(), MagicMock()

    CompositeErrorLogger([first, second]).log(sample_error)

    first.log.assert_called_once_with(sample_error)
    second.log.assert_called_once_with(sample_error)


def test_composite_logger_isolates_failures(sample_error):
    broken, healthy = MagicMock(), MagicMock()
    broken.log.side_effect = RuntimeError("sink down")

    CompositeErrorLogger([broken, healthy]).log(sample_error)

    healthy.log.assert_called_once_with(sample_error)


def test_structured_error_log_fields(sample_error):
    fields = sample_error.to_log_fields()

    assert fields["category"] == "overloaded"
    assert fields["provider"] == "anthropic"
    assert fields["ctx_attempt"] == 1
    assert fields["fallback_hint"] == "switch_model"


# ============================================================================
# Model Selector
# ============================================================================


@pytest.mark.asyncio
async def test_priority_selector_picks_first_eligible(fallback_config):
    selector = PriorityModelSelector(fallback_config, AlwaysAvailableOracle())
    assert isinstance(selector, ModelSelector)

    selection = await selector.select_optimal(None, 100)

    assert selection == ModelSelection(provider="anthropic", model="claude-opus")


@pytest.mark.asyncio
async def test_priority_selector_skips_blocked(fallback_config, oracle_factory):
    blocked = {("anthropic", model) for model in fallback_config.chain_for("anthropic")}
    selector = PriorityModelSelector(fallback_config, oracle_factory(blocked))

    selection = await selector.select_optimal("code", 100)

    assert selection == ModelSelection(provider="openai", model="gpt-4o")


@pytest.mark.asyncio
async def test_priority_selector_returns_none_when_nothing_available(fallback_config):
    oracle = MagicMock()
    oracle.is_available.return_value = False

    assert await PriorityModelSelector(fallback_config, oracle).select_optimal(None, 0) is None
