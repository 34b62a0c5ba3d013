"""
OpenAI-compatible client for cloud providers.

Speaks the /chat/completions dialect shared by OpenAI, Groq, Mistral,
OpenRouter and most hosted gateways. One instance per provider; the
provider name only changes logging and error messages.
"""

import json
import time
from typing import Optional

import httpx
import structlog

from fallback_layer.llm.base_client import BaseLLMClient
from fallback_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
)
from fallback_layer.models.llm_models import CompletionRequest, ProviderResponse, TokenUsage


logger = structlog.get_logger(__name__)


class OpenAICompatibleClient(BaseLLMClient):
    """
    Client for OpenAI-style chat completion APIs.

    API Endpoints:
    - POST /chat/completions: Chat completion
    - GET /models: List available models
    """

    def __init__(
        self,
        base_url: str = "https://api.openai.com/v1",
        api_key: Optional[str] = None,
        timeout: int = 120,
        provider_name: str = "openai",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        self.provider_name = provider_name
        super().__init__(base_url, timeout, api_key=api_key, transport=transport, **kwargs)

    def _headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def generate(self, request: CompletionRequest) -> ProviderResponse:
        """
        Generate a chat completion.

        POST /chat/completions with payload:
        {
            "model": "gpt-4o-mini",
            "messages": [{"role": "user", "content": "..."}],
            "temperature": 0.7,
            "max_tokens": 2048
        }

        Response:
        {
            "model": "gpt-4o-mini-2024-07-18",
            "choices": [{"message": {"content": "..."}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 50, "completion_tokens": 150}
        }
        """
        if not self.api_key:
            raise LLMAuthenticationError(
                f"{self.provider_name} api key not set",
                details={"model": request.model},
            )

        start_time = time.time()
        payload = {
            "model": request.model,
            "messages": [message.model_dump() for message in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }
        if request.stop_sequences:
            payload["stop"] = request.stop_sequences

        logger.info(
            "Sending chat request",
            provider=self.provider_name,
            model=request.model,
            messages_count=len(request.messages),
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            response = await client.post("/chat/completions", json=payload)
            response.raise_for_status()
            response_data = response.json()

        except httpx.TimeoutException as e:
            logger.warning("Provider request timeout", provider=self.provider_name, timeout=self.timeout)
            raise LLMTimeoutError(
                f"{self.provider_name} request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "model": request.model},
            ) from e

        except httpx.HTTPStatusError as e:
            raise self.http_error(e, request.model) from e

        except (httpx.NetworkError, httpx.ConnectError) as e:
            logger.warning("Provider network error", provider=self.provider_name, error=str(e))
            raise LLMConnectionError(
                f"{self.provider_name} network error: {str(e)}",
                details={"error_type": type(e).__name__, "model": request.model},
            ) from e

        except json.JSONDecodeError as e:
            raise LLMGenerationError(
                f"Invalid JSON response from {self.provider_name}",
                details={"parse_error": str(e), "model": request.model},
            ) from e

        choices = response_data.get("choices") or []
        if not choices:
            raise LLMGenerationError(
                f"{self.provider_name} returned no choices",
                details={"response": response_data, "model": request.model},
            )

        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        usage_data = response_data.get("usage") or {}
        usage = TokenUsage(
            input_tokens=usage_data.get("prompt_tokens") or 0,
            output_tokens=usage_data.get("completion_tokens") or 0,
        )
        latency_ms = int((time.time() - start_time) * 1000)

        logger.info(
            "Provider generation successful",
            provider=self.provider_name,
            model=response_data.get("model", request.model),
            latency_ms=latency_ms,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )

        return ProviderResponse(
            content=content,
            usage=usage,
            model_version=response_data.get("model", request.model),
            finish_reason=choice.get("finish_reason"),
            latency_ms=latency_ms,
            raw_metadata={"id": response_data.get("id")},
        )

    async def health_check(self) -> bool:
        """GET /models; False on any error."""
        if not self.api_key:
            return False
        try:
            client = await self._get_client()
            response = await client.get("/models", timeout=10.0)
            response.raise_for_status()
            return True
        except Exception as e:
            logger.warning("Provider health check failed", provider=self.provider_name, error=str(e))
            return False

    async def list_models(self) -> list[str]:
        try:
            client = await self._get_client()
            response = await client.get("/models", timeout=10.0)
            response.raise_for_status()
            return [m["id"] for m in response.json().get("data", [])]
        except httpx.HTTPStatusError as e:
            raise self.http_error(e, "*") from e
        except Exception as e:
            raise LLMConnectionError(
                f"Failed to list {self.provider_name} models: {str(e)}",
                details={"error": str(e)},
            ) from e
