"""
Fallback engine exceptions.

These never escape RequestOrchestrator.execute(): the orchestrator
converts them into a RequestOutcome. They exist so the internal steps
(selection, waiting) can signal terminal conditions cleanly.
"""


class FallbackError(Exception):
    """Base exception for the fallback engine."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoProviderAvailable(FallbackError):
    """
    Raised when no initial provider/model can be selected.

    Happens when the caller supplied nothing, the model selector returned
    nothing, and no provider in the priority order is eligible with a
    non-empty chain.
    """
    pass


class RequestCancelled(FallbackError):
    """Raised when the caller's cancel event is observed."""
    pass
