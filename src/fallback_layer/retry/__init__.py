"""
Provider fallback and retry engine.

Given a request that must reach some LLM backend, the engine classifies
each failure and decides between:

1. **Retry**: Same provider/model after a bounded backoff
2. **Switch Model**: Next model in the provider's chain (cheaper/faster)
3. **Switch Provider**: Next eligible provider in the global priority order
4. **Stop**: Budget spent, nothing reachable, or not recoverable

Main Components:
    - RequestOrchestrator: Drives the retry loop, returns a RequestOutcome
    - FallbackDecisionPolicy: Classified error + attempt budget -> FallbackDecision
    - FallbackChainResolver: FallbackDecision -> next ProviderCandidate
    - RequestState: Per-request tried set, fallback path and attempt log

Usage:
    >>> from fallback_layer.retry import RequestOrchestrator
    >>> orchestrator = RequestOrchestrator(registry, settings.fallback_configuration())
    >>> outcome = await orchestrator.execute(messages)
"""

from fallback_layer.retry.exceptions import FallbackError, NoProviderAvailable, RequestCancelled
from fallback_layer.retry.orchestrator import RequestOrchestrator, estimate_tokens
from fallback_layer.retry.policy import BackoffPolicy, FallbackDecisionPolicy
from fallback_layer.retry.resolver import FallbackChainResolver
from fallback_layer.retry.state import RequestState

__all__ = [
    "RequestOrchestrator",
    "FallbackDecisionPolicy",
    "BackoffPolicy",
    "FallbackChainResolver",
    "RequestState",
    "FallbackError",
    "NoProviderAvailable",
    "RequestCancelled",
    "estimate_tokens",
]
