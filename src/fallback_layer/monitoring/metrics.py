"""Custom Prometheus metrics for the LLM Fallback Layer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- fallback_requests_total (high exhausted / no_fallback_available share)
- fallback_errors_total (auth_error spikes usually mean a revoked key)
- fallback_transitions_total (high switch_provider rate indicates a degraded primary)
"""

from prometheus_client import Counter, Histogram

# === Request Metrics ===

fallback_requests_total = Counter(
    "fallback_requests_total",
    "Total orchestrated requests by terminal status",
    ["status"],
)
"""
Orchestrated requests by terminal status.

Labels:
- status: success, exhausted, no_fallback_available, not_recoverable, cancelled

Alert thresholds:
- WARN: non-success share > 5%
- CRITICAL: non-success share > 20%
"""

fallback_attempts_total = Counter(
    "fallback_attempts_total",
    "Total provider attempts by provider and outcome",
    ["provider", "outcome"],
)
"""
Provider attempts (one per fallback path entry).

Labels:
- provider: anthropic, openai, ollama, ...
- outcome: success, error, rate_limited (blocked locally, provider not called)
"""

# === Error Metrics ===

fallback_errors_total = Counter(
    "fallback_errors_total",
    "Total classified provider errors by category",
    ["category"],
)
"""
Classified errors by category.

Labels:
- category: rate_limit, overloaded, auth_error, server_error, network_error,
  validation_error, unknown
"""

fallback_transitions_total = Counter(
    "fallback_transitions_total",
    "Total fallback moves by type",
    ["fallback_type"],
)
"""
Fallback moves actually taken (after a candidate was resolved).

Labels:
- fallback_type: retry, switch_model, switch_provider
"""

# === Provider Performance Metrics ===

provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Provider call latency in seconds",
    ["provider", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Provider call latency histogram.

Labels:
- provider: Provider name
- success: true (call returned content), false (call raised)

Buckets optimized for LLM inference (0.5s to 120s).
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens by provider and token type",
    ["provider", "token_type"],
)
"""
Token usage counter.

Labels:
- provider: Provider name
- token_type: input, output
"""
