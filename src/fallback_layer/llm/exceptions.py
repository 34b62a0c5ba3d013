"""
Custom exceptions for the provider client layer.

Clients raise these with the HTTP status (when there is one) in
`details["status"]` and in the message, so the error classifier can map
them onto the fallback taxonomy without knowing the client.
"""


class LLMClientError(Exception):
    """
    Base exception for all provider client errors.

    All client exceptions inherit from this to allow catching
    any provider error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int | None:
        return self.details.get("status")


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to connect to the provider.

    Includes network errors, DNS failures, refused connections.
    Classified as network_error (retry in place with linear backoff).
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """
    Raised when the provider call exceeds the timeout threshold.

    Separate from generic connection errors for logging; classified as
    network_error as well.
    """
    pass


class LLMGenerationError(LLMClientError):
    """
    Raised when the provider returns an error during generation.

    Examples:
    - 5xx server errors
    - Overloaded / capacity errors
    - Malformed or empty responses

    The classifier decides between server_error, overloaded and
    validation_error from the status and message.
    """
    pass


class LLMRateLimitError(LLMClientError):
    """
    Raised when the provider rate-limits the request (HTTP 429).

    Carries the provider's retry-after hint in the message when given.
    """
    pass


class LLMAuthenticationError(LLMClientError):
    """
    Raised on HTTP 401/403 or a missing API key.

    Not recoverable on the same provider; may switch provider when
    cross-provider fallback is allowed.
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """
    Raised when the requested model (or provider) is not available.
    """
    pass
