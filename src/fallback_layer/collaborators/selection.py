"""
Model selectors.

PriorityModelSelector picks the first eligible provider (priority order)
whose head model the rate limit oracle currently allows. It ignores the
task hint; cost/quality scoring selectors plug in through the same
ModelSelector protocol.
"""

from typing import Optional

from fallback_layer.collaborators.base import RateLimitOracle
from fallback_layer.models.fallback_models import FallbackConfiguration
from fallback_layer.models.llm_models import ModelSelection


class PriorityModelSelector:
    """Select the first available head-of-chain model in priority order."""

    def __init__(self, config: FallbackConfiguration, oracle: RateLimitOracle):
        self.config = config
        self.oracle = oracle

    async def select_optimal(
        self, task_hint: Optional[str], estimated_tokens: int
    ) -> Optional[ModelSelection]:
        for provider in self.config.eligible_providers():
            for model in self.config.chain_for(provider):
                if self.oracle.is_available(provider, model):
                    return ModelSelection(provider=provider, model=model)
        return None
