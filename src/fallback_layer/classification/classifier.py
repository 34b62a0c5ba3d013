"""
Error classifier for provider failures.

Maps a raw failure (message and optional exception type name) onto the
closed ErrorCategory taxonomy using the ordered signal table. The
classifier is a pure function over static data: same input, same output,
and it never raises. Anything it cannot place resolves to UNKNOWN
(non-recoverable).
"""

import re
from typing import Optional

import structlog

from fallback_layer.classification.signals import RETRY_AFTER_PATTERN, SIGNAL_TABLE
from fallback_layer.models.enums import ErrorCategory
from fallback_layer.models.error_models import ClassifiedError, policy_for


logger = structlog.get_logger(__name__)


def parse_retry_after_ms(message: str) -> Optional[int]:
    """
    Extract a retry-after hint from a provider message.

    Accepts seconds ("retry after 20s", "retry-after: 20") and
    milliseconds ("retry after 1500ms"). Bare numbers are seconds.

    Returns:
        Hint in milliseconds, or None when the message carries none
    """
    match = RETRY_AFTER_PATTERN.search(message or "")
    if not match:
        return None
    value = float(match.group(1))
    unit = (match.group(2) or "s").lower()
    if unit.startswith("m"):
        return int(value)
    return int(value * 1000)


def describe_exception(exc: BaseException) -> tuple[str, str]:
    """
    Render an exception as (message, origin_type) for classification.

    The HTTP status carried by the exception (`status_code` attribute or
    `details["status"]`, as set by the provider clients) is prefixed when
    the message does not already mention it, and a chained cause is
    appended so its signals are visible too.
    """
    message = str(exc) or type(exc).__name__

    status = getattr(exc, "status_code", None)
    details = getattr(exc, "details", None)
    if status is None and isinstance(details, dict):
        status = details.get("status")
    if status is not None and not re.search(rf"\b{re.escape(str(status))}\b", message):
        message = f"{status} {message}"

    cause = exc.__cause__ or exc.__context__
    if cause is not None and str(cause) and str(cause) not in message:
        message = f"{message} (caused by {type(cause).__name__}: {cause})"

    return message, type(exc).__name__


class ErrorClassifier:
    """
    Table-driven error classifier.

    Categories are tried in signal-table order (RATE_LIMIT, OVERLOADED,
    AUTH_ERROR, SERVER_ERROR, NETWORK_ERROR, VALIDATION_ERROR); the first
    matching category wins, UNKNOWN otherwise.
    """

    def __init__(self, signal_table=SIGNAL_TABLE):
        self.signal_table = signal_table

    def classify(self, raw_message: Optional[str], origin_type: Optional[str] = None) -> ClassifiedError:
        """
        Classify a raw failure message.

        Args:
            raw_message: Failure message (may be empty or None)
            origin_type: Exception type name, searched alongside the message

        Returns:
            ClassifiedError (never raises)
        """
        message = raw_message or ""
        haystack = f"{message} {origin_type}" if origin_type else message

        for category, patterns in self.signal_table:
            for pattern in patterns:
                if pattern.search(haystack):
                    return self._build(category, message, pattern.pattern)

        return self._build(ErrorCategory.UNKNOWN, message, None)

    def classify_exception(self, exc: BaseException) -> ClassifiedError:
        """Classify an exception raised by a provider call."""
        message, origin_type = describe_exception(exc)
        return self.classify(message, origin_type)

    @staticmethod
    def _build(category: ErrorCategory, message: str, matched_signal: Optional[str]) -> ClassifiedError:
        policy = policy_for(category)
        retry_after_ms = policy.base_retry_after_ms
        if policy.recoverable:
            hinted = parse_retry_after_ms(message)
            if hinted is not None:
                retry_after_ms = hinted

        classified = ClassifiedError(
            category=category,
            recoverable=policy.recoverable,
            retry_after_ms=retry_after_ms,
            fallback_hint=policy.fallback_hint,
            matched_signal=matched_signal,
        )
        logger.debug(
            "Error classified",
            category=category.value,
            recoverable=classified.recoverable,
            retry_after_ms=retry_after_ms,
            matched_signal=matched_signal,
        )
        return classified


# Module-level default, the table is static
default_classifier = ErrorClassifier()


def classify(raw_message: Optional[str], origin_type: Optional[str] = None) -> ClassifiedError:
    """Classify with the default signal table."""
    return default_classifier.classify(raw_message, origin_type)
