"""
Rate limit oracles.

AlwaysAvailableOracle is the no-op for setups without local rate limiting.
CooldownRateLimitOracle keeps per provider/model cooldown windows; it is
fed by the error logger chain (it implements ErrorLogger too) so a
provider-reported rate limit blocks that target for the hinted window.
"""

import threading
import time
from typing import Callable, Optional

import structlog

from fallback_layer.models.enums import ErrorCategory
from fallback_layer.models.error_models import StructuredError


logger = structlog.get_logger(__name__)


class AlwaysAvailableOracle:
    """Oracle that never blocks a request."""

    def is_available(self, provider: str, model: str) -> bool:
        return True

    def percent_remaining(self, provider: str, model: str) -> Optional[float]:
        return None


class CooldownRateLimitOracle:
    """
    Cooldown-window rate limit oracle.

    A cooldown can target one model (provider, model) or a whole provider
    (model=None). Access is guarded by a lock so concurrent requests can
    share one instance.

    Attributes:
        default_cooldown_ms: Window used when an error carries no retry-after
    """

    def __init__(
        self,
        default_cooldown_ms: int = 30_000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_cooldown_ms = default_cooldown_ms
        self._clock = clock
        self._lock = threading.Lock()
        # (provider, model or None) -> (blocked_until, window_ms)
        self._blocked: dict[tuple[str, Optional[str]], tuple[float, int]] = {}

    def mark_limited(self, provider: str, model: Optional[str] = None, retry_after_ms: Optional[int] = None) -> None:
        """Block a provider (or one of its models) for retry_after_ms."""
        window_ms = retry_after_ms if retry_after_ms and retry_after_ms > 0 else self.default_cooldown_ms
        now = self._clock()
        until = now + window_ms / 1000.0
        with self._lock:
            self._prune(now)
            current = self._blocked.get((provider, model))
            if current is None or current[0] < until:
                self._blocked[(provider, model)] = (until, window_ms)

        logger.info(
            "Rate limit cooldown started",
            provider=provider,
            model=model,
            window_ms=window_ms,
        )

    def _prune(self, now: float) -> None:
        """Drop cooldowns whose window has closed. Caller holds the lock."""
        for key in [key for key, (until, _) in self._blocked.items() if until <= now]:
            del self._blocked[key]

    @property
    def active_cooldowns(self) -> int:
        """Number of tracked cooldown entries (expired ones are dropped on access)."""
        with self._lock:
            return len(self._blocked)

    def _entries_for(self, provider: str, model: str) -> list[tuple[float, int]]:
        keys = ((provider, None), (provider, model))
        return [self._blocked[key] for key in keys if key in self._blocked]

    def time_until_available_ms(self, provider: str, model: str) -> int:
        """Milliseconds until the next window opens (0 when available now)."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            deadlines = [entry[0] for entry in self._entries_for(provider, model)]
        remaining = max((deadline - now for deadline in deadlines), default=0.0)
        return max(0, int(remaining * 1000))

    def is_available(self, provider: str, model: str) -> bool:
        return self.time_until_available_ms(provider, model) == 0

    def percent_remaining(self, provider: str, model: str) -> Optional[float]:
        """0 right after a cooldown starts, rising to 100 when the target is unblocked."""
        now = self._clock()
        with self._lock:
            entries = self._entries_for(provider, model)
        if not entries:
            return 100.0
        until, window_ms = max(entries)
        remaining_ms = max(0.0, (until - now) * 1000)
        if window_ms <= 0:
            return 100.0
        return round(100.0 * (1 - remaining_ms / window_ms), 2)

    def reset(self, provider: Optional[str] = None) -> None:
        """Clear cooldowns for one provider, or all of them."""
        with self._lock:
            if provider is None:
                self._blocked.clear()
            else:
                for key in [key for key in self._blocked if key[0] == provider]:
                    del self._blocked[key]

    def log(self, error: StructuredError) -> None:
        """ErrorLogger hook: start a cooldown for provider-reported rate limits."""
        if error.category is ErrorCategory.RATE_LIMIT and error.provider and error.model:
            if error.context.get("local_block"):
                return
            self.mark_limited(error.provider, error.model, error.retry_after_ms)
