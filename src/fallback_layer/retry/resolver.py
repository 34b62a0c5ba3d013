"""
Fallback chain resolver.

Turns a fallback type into a concrete provider/model candidate:
    RETRY           -> same provider/model
    SWITCH_MODEL    -> next untried, available model after the current one
                       in the current provider's chain
    SWITCH_PROVIDER -> first untried, available model of the next eligible
                       provider in priority order (falls back to
                       SWITCH_MODEL when cross-provider is not allowed)
    NONE            -> None

Earlier chain entries win; provider priority comes from configuration and
is never re-ranked at resolution time. None means nothing is reachable,
which is a normal stop condition.
"""

from typing import AbstractSet, Optional

import structlog

from fallback_layer.collaborators.base import RateLimitOracle
from fallback_layer.collaborators.rate_limit import AlwaysAvailableOracle
from fallback_layer.models.enums import FallbackType
from fallback_layer.models.fallback_models import FallbackConfiguration, ProviderCandidate


logger = structlog.get_logger(__name__)

TriedSet = AbstractSet[tuple[str, str]]


class FallbackChainResolver:
    """
    Resolve the next provider/model to try.

    Attributes:
        config: Immutable fallback configuration
        oracle: Rate limit oracle consulted for every candidate
    """

    def __init__(self, config: FallbackConfiguration, oracle: RateLimitOracle | None = None):
        self.config = config
        self.oracle = oracle or AlwaysAvailableOracle()

    def next_candidate(
        self,
        current_provider: str,
        current_model: str,
        fallback_type: FallbackType,
        cross_provider_allowed: bool,
        tried: TriedSet,
    ) -> Optional[ProviderCandidate]:
        """
        Compute the next candidate.

        Args:
            current_provider: Provider of the attempt that failed
            current_model: Model of the attempt that failed
            fallback_type: Move chosen by the decision policy
            cross_provider_allowed: Whether switching provider is permitted
            tried: Provider/model pairs already attempted in this request

        Returns:
            ProviderCandidate, or None when nothing is reachable
        """
        if fallback_type is FallbackType.NONE:
            return None

        if fallback_type is FallbackType.RETRY:
            return ProviderCandidate(current_provider, current_model, is_new_provider=False)

        if fallback_type is FallbackType.SWITCH_PROVIDER and cross_provider_allowed:
            candidate = self._next_provider(current_provider, tried)
        else:
            candidate = self._next_model(current_provider, current_model, tried)

        if candidate is None:
            logger.info(
                "No fallback candidate available",
                provider=current_provider,
                model=current_model,
                fallback_type=fallback_type.value,
                cross_provider_allowed=cross_provider_allowed,
                tried_count=len(tried),
            )
        else:
            logger.info(
                "Fallback candidate resolved",
                from_provider=current_provider,
                from_model=current_model,
                to_provider=candidate.provider,
                to_model=candidate.model,
                is_new_provider=candidate.is_new_provider,
            )
        return candidate

    def _next_model(self, provider: str, current_model: str, tried: TriedSet) -> Optional[ProviderCandidate]:
        chain = self.config.chain_for(provider)
        try:
            index = chain.index(current_model)
        except ValueError:
            index = -1  # Unconfigured model: scan from the head of the chain

        for model in chain[index + 1:]:
            if self._usable(provider, model, tried):
                return ProviderCandidate(provider, model, is_new_provider=False)
        return None

    def _next_provider(self, current_provider: str, tried: TriedSet) -> Optional[ProviderCandidate]:
        for provider in self.config.provider_priority:
            if provider == current_provider:
                continue
            if not self.config.is_eligible(provider):
                logger.debug("Skipping ineligible provider", provider=provider)
                continue
            for model in self.config.chain_for(provider):
                if self._usable(provider, model, tried):
                    return ProviderCandidate(provider, model, is_new_provider=True)
        return None

    def _usable(self, provider: str, model: str, tried: TriedSet) -> bool:
        if (provider, model) in tried:
            return False
        if not self.oracle.is_available(provider, model):
            logger.debug("Skipping rate limited candidate", provider=provider, model=model)
            return False
        return True
