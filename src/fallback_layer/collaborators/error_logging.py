"""
Error loggers.

StructlogErrorLogger writes each StructuredError as one structured log
event. CompositeErrorLogger fans out to several loggers (e.g. structlog
plus a CooldownRateLimitOracle); a failing member never stops the others.
"""

from typing import Iterable

import structlog

from fallback_layer.collaborators.base import ErrorLogger
from fallback_layer.models.error_models import StructuredError


logger = structlog.get_logger(__name__)


class NullErrorLogger:
    """Error logger that drops everything."""

    def log(self, error: StructuredError) -> None:
        return None


class StructlogErrorLogger:
    """Log every StructuredError as a warning event."""

    def __init__(self, event: str = "Provider attempt failed"):
        self.event = event

    def log(self, error: StructuredError) -> None:
        logger.warning(self.event, **error.to_log_fields())


class CompositeErrorLogger:
    """Forward each error to every member logger."""

    def __init__(self, loggers: Iterable[ErrorLogger]):
        self.loggers = list(loggers)

    def log(self, error: StructuredError) -> None:
        for member in self.loggers:
            try:
                member.log(error)
            except Exception as e:
                logger.warning(
                    "Error logger member failed",
                    member=type(member).__name__,
                    error=str(e),
                )
