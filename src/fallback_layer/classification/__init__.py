"""
Error classification for provider failures.

Components:
- signals: Ordered signal table (category precedence lives here)
- classifier: ErrorClassifier, classify(), retry-after hint parsing
"""

from fallback_layer.classification.classifier import (
    ErrorClassifier,
    classify,
    default_classifier,
    describe_exception,
    parse_retry_after_ms,
)
from fallback_layer.classification.signals import SIGNAL_TABLE

__all__ = [
    "ErrorClassifier",
    "SIGNAL_TABLE",
    "classify",
    "default_classifier",
    "describe_exception",
    "parse_retry_after_ms",
]
