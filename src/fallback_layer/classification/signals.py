"""
Signal table for error classification.

Ordered list of (category, patterns). The classifier walks the table top
to bottom and the first category with a matching pattern wins, so the
order below IS the precedence policy. New signals may be added to any
row; rows must not be reordered.

Tie-breaks this order encodes:
    - "429" / "rate limit" beats everything (a throttled 503 is still a rate limit).
    - "503 ... overloaded" resolves to OVERLOADED: capacity-style 503s are
      checked before SERVER_ERROR. A bare "503 Service Unavailable" has no
      capacity signal and falls through to SERVER_ERROR.
    - "invalid api key" resolves to AUTH_ERROR before VALIDATION_ERROR can
      match on "invalid".
    - "504 gateway timeout" resolves to SERVER_ERROR before NETWORK_ERROR
      can match on "timeout".

Status codes are matched on word boundaries so "4290 tokens" is not a 429.
All patterns are compiled case-insensitive.
"""

import re
from typing import Pattern

from fallback_layer.models.enums import ErrorCategory


_SIGNALS: list[tuple[ErrorCategory, tuple[str, ...]]] = [
    (
        ErrorCategory.RATE_LIMIT,
        (
            r"\b429\b",
            r"rate[\s_-]?limit",
            r"too many requests",
            r"quota exceeded",
            r"exceeded (your|the) (current )?quota",
            r"resource[\s_]exhausted",
            r"requests per (minute|day)",
            r"tokens per minute",
        ),
    ),
    (
        ErrorCategory.OVERLOADED,
        (
            r"overloaded",
            r"\b529\b",
            r"over capacity",
            r"at capacity",
            r"insufficient capacity",
            r"server is busy",
            r"temporarily unavailable",
        ),
    ),
    (
        ErrorCategory.AUTH_ERROR,
        (
            r"\b401\b",
            r"\b403\b",
            r"unauthori[sz]ed",
            r"forbidden",
            r"invalid[\s_-]?api[\s_-]?key",
            r"incorrect api key",
            r"api key (is )?(missing|not (set|provided|valid))",
            r"authentication",
            r"permission denied",
        ),
    ),
    (
        ErrorCategory.SERVER_ERROR,
        (
            r"\b500\b",
            r"\b502\b",
            r"\b503\b",
            r"\b504\b",
            r"internal server error",
            r"bad gateway",
            r"service unavailable",
            r"gateway timeout",
            r"server error",
        ),
    ),
    (
        ErrorCategory.NETWORK_ERROR,
        (
            r"timed?[\s_-]?out",
            r"timeout",
            r"connection[\s_]?(refused|reset|aborted|closed|error)",
            r"connecterror",
            r"econn(refused|reset)",
            r"name or service not known",
            r"getaddrinfo",
            r"\bdns\b",
            r"network (is )?unreachable",
            r"network[\s_]?error",
            r"remote ?protocol ?error",
            r"\bssl\b",
        ),
    ),
    (
        ErrorCategory.VALIDATION_ERROR,
        (
            r"\b400\b",
            r"\b422\b",
            r"bad request",
            r"invalid request",
            r"invalid[\s_]schema",
            r"invalid (parameter|argument|value)",
            r"validation",
            r"malformed",
            r"context[\s_]length",
            r"maximum context",
            r"prompt is too long",
        ),
    ),
]


def compile_signal_table() -> tuple[tuple[ErrorCategory, tuple[Pattern[str], ...]], ...]:
    """Compile the signal table into case-insensitive regexes, preserving order."""
    return tuple(
        (category, tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns))
        for category, patterns in _SIGNALS
    )


SIGNAL_TABLE = compile_signal_table()

# Matches "retry after 20s", "retry-after: 1500ms", "Retry after 3 seconds", "try again in 12s"
RETRY_AFTER_PATTERN = re.compile(
    r"(?:retry[\s_-]?after|try again in)[:=\s]+(\d+(?:\.\d+)?)\s*(ms|milliseconds?|s|sec|secs|seconds?)?",
    re.IGNORECASE,
)
