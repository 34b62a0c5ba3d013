"""
Enumerations for the fallback layer data model.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ErrorCategory(str, Enum):
    """
    Closed taxonomy of provider failure categories.

    The declaration order is also the classification precedence order:
    the classifier tries categories top to bottom and UNKNOWN is the
    catch-all when no signal matches.
    """

    RATE_LIMIT = "rate_limit"
    OVERLOADED = "overloaded"
    AUTH_ERROR = "auth_error"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN = "unknown"


class FallbackType(str, Enum):
    """What to do after a failed attempt."""

    RETRY = "retry"
    SWITCH_MODEL = "switch_model"
    SWITCH_PROVIDER = "switch_provider"
    NONE = "none"


class OutcomeStatus(str, Enum):
    """
    Terminal status of one orchestrated request.

    SUCCESS is the only status with success=True on the outcome.
    """

    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    NO_FALLBACK_AVAILABLE = "no_fallback_available"
    NOT_RECOVERABLE = "not_recoverable"
    CANCELLED = "cancelled"
