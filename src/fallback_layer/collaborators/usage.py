"""
Usage trackers.

NullUsageTracker discards everything. MetricsUsageTracker exports token
counts to Prometheus and keeps in-memory per provider/model totals.
"""

import threading
from dataclasses import dataclass

import structlog

from fallback_layer.monitoring.metrics import llm_tokens_total


logger = structlog.get_logger(__name__)


class NullUsageTracker:
    """Usage tracker that records nothing."""

    def record(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        is_error: bool = False,
    ) -> None:
        return None


@dataclass
class UsageTotals:
    """Running totals for one provider/model pair."""

    requests: int = 0
    errors: int = 0
    input_tokens: int = 0
    output_tokens: int = 0


class MetricsUsageTracker:
    """Prometheus-backed usage tracker with in-memory totals."""

    def __init__(self):
        self._lock = threading.Lock()
        self._totals: dict[str, UsageTotals] = {}

    def record(
        self,
        provider: str,
        model: str,
        input_tokens: int,
        output_tokens: int,
        is_error: bool = False,
    ) -> None:
        key = f"{provider}/{model}"
        with self._lock:
            totals = self._totals.setdefault(key, UsageTotals())
            totals.requests += 1
            totals.input_tokens += input_tokens
            totals.output_tokens += output_tokens
            if is_error:
                totals.errors += 1

        if input_tokens:
            llm_tokens_total.labels(provider=provider, token_type="input").inc(input_tokens)
        if output_tokens:
            llm_tokens_total.labels(provider=provider, token_type="output").inc(output_tokens)

        logger.debug(
            "Usage recorded",
            provider=provider,
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            is_error=is_error,
        )

    def totals(self) -> dict[str, UsageTotals]:
        """Snapshot of totals keyed by "provider/model"."""
        with self._lock:
            return {key: UsageTotals(**vars(value)) for key, value in self._totals.items()}
