"""
Abstract base client for provider inference.

Defines the interface that all provider client implementations (Ollama,
OpenAI-compatible APIs, ...) must adhere to. This abstraction lets the
provider registry swap backends without touching the fallback engine.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog

from fallback_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMClientError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMRateLimitError,
)
from fallback_layer.models.llm_models import CompletionRequest, ProviderResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for provider clients.

    Responsibilities:
    - Send completion requests to the provider
    - Parse responses into ProviderResponse
    - Map HTTP failures onto the LLMClientError hierarchy
    - Provide health check and model listing

    Does NOT handle:
    - Retries, model switching or provider switching (that's RequestOrchestrator's job)
    - Rate limit accounting (that's the RateLimitOracle's job)
    """

    provider_name: str = "base"

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the provider API
            timeout: Request timeout in seconds
            api_key: Bearer credential, if the provider needs one
            transport: Custom httpx transport (tests use httpx.MockTransport)
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.api_key = api_key
        self.extra_config = kwargs
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            "Initialized provider client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
            has_api_key=api_key is not None,
        )

    def _headers(self) -> dict[str, str]:
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self._headers(),
                transport=self._transport,
                follow_redirects=True,
            )
            logger.debug("Created new httpx AsyncClient", client_class=self.__class__.__name__)
        return self._client

    @abstractmethod
    async def generate(self, request: CompletionRequest) -> ProviderResponse:
        """
        Generate a completion.

        Args:
            request: Standardized completion request

        Returns:
            ProviderResponse with content and usage

        Raises:
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMRateLimitError: HTTP 429
            LLMAuthenticationError: HTTP 401/403
            LLMModelNotAvailableError: Model not found
            LLMGenerationError: Other server-side errors
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the provider is reachable.

        Returns:
            True if healthy, False otherwise

        Note:
            This should NOT raise exceptions - return False on error.
        """
        pass

    @abstractmethod
    async def list_models(self) -> list[str]:
        """List model names the provider serves."""
        pass

    def http_error(self, error: httpx.HTTPStatusError, model: str) -> LLMClientError:
        """Map an HTTP status error onto the client exception hierarchy."""
        status_code = error.response.status_code
        error_text = error.response.text[:500]
        details = {"status": status_code, "error": error_text, "model": model}
        retry_after = error.response.headers.get("retry-after")
        if retry_after:
            details["retry_after"] = retry_after

        logger.error(
            "Provider HTTP error",
            provider=self.provider_name,
            status_code=status_code,
            error_text=error_text,
            model=model,
        )

        message = f"{self.provider_name} HTTP {status_code}: {error_text}"
        if status_code == 429:
            if retry_after:
                message = f"{message} (retry after {retry_after}s)"
            return LLMRateLimitError(message, details=details)
        if status_code in (401, 403):
            return LLMAuthenticationError(message, details=details)
        if status_code == 404:
            return LLMModelNotAvailableError(f"Model not found: {model} ({message})", details=details)
        return LLMGenerationError(message, details=details)

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed provider client", client_class=self.__class__.__name__)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
