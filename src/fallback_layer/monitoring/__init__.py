"""Monitoring and metrics instrumentation for the LLM Fallback Layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from fallback_layer.monitoring.metrics import (
    fallback_attempts_total,
    fallback_errors_total,
    fallback_requests_total,
    fallback_transitions_total,
    llm_tokens_total,
    provider_latency_seconds,
)

__all__ = [
    "fallback_requests_total",
    "fallback_attempts_total",
    "fallback_errors_total",
    "fallback_transitions_total",
    "provider_latency_seconds",
    "llm_tokens_total",
]
