"""
Per-request retry state.

One RequestState is created per orchestrated request and never shared:
the tried set, the fallback path, the attempt counter and the attempt log
all live here rather than at module level, so concurrent requests do not
interfere.
"""

import time
from dataclasses import dataclass, field

from fallback_layer.models.error_models import StructuredError
from fallback_layer.models.fallback_models import combination_key


@dataclass
class RequestState:
    """
    Mutable state of one request's retry loop.

    Attributes:
        max_attempts: Attempt budget for this request
        tried: Provider/model pairs attempted (insertion only)
        fallback_path: "provider/model" per attempt, in order
        errors: StructuredError per failed attempt
        started_at: Monotonic start time
    """

    max_attempts: int
    tried: set[tuple[str, str]] = field(default_factory=set)
    fallback_path: list[str] = field(default_factory=list)
    errors: list[StructuredError] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def attempts(self) -> int:
        return len(self.fallback_path)

    @property
    def budget_left(self) -> bool:
        return self.attempts < self.max_attempts

    @property
    def last_error(self) -> StructuredError | None:
        return self.errors[-1] if self.errors else None

    def record_attempt(self, provider: str, model: str) -> int:
        """Mark a pair as tried and append it to the path. Returns the attempt number."""
        if not self.budget_left:
            raise RuntimeError(f"attempt budget of {self.max_attempts} already spent")
        self.tried.add((provider, model))
        self.fallback_path.append(combination_key(provider, model))
        return self.attempts

    def record_error(self, error: StructuredError) -> None:
        self.errors.append(error)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)
