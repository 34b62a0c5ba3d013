"""
Ollama client implementation for local inference.

Communicates with the Ollama API using httpx AsyncClient. Supports:
- Chat completions (POST /api/chat, non-streaming)
- Connection pooling via a persistent client
- Health checks and model listing (GET /api/tags)

Connection-level retries are deliberately absent: the fallback engine
owns every retry decision.
"""

import json
import time
from typing import Optional

import httpx
import structlog

from fallback_layer.llm.base_client import BaseLLMClient
from fallback_layer.llm.exceptions import (
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
)
from fallback_layer.models.llm_models import CompletionRequest, ProviderResponse, TokenUsage


logger = structlog.get_logger(__name__)


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific client using httpx for async HTTP communication.

    API Endpoints:
    - POST /api/chat: Chat completion
    - GET /api/tags: List available models
    """

    provider_name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: int = 120,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        super().__init__(base_url, timeout, api_key=None, transport=transport, **kwargs)

    async def generate(self, request: CompletionRequest) -> ProviderResponse:
        """
        Generate a chat completion using the Ollama API.

        POST /api/chat with payload:
        {
            "model": "qwen2.5:3b",
            "messages": [{"role": "user", "content": "..."}],
            "stream": false,
            "options": {"temperature": 0.7, "num_predict": 2048}
        }

        Response:
        {
            "model": "qwen2.5:3b",
            "message": {"role": "assistant", "content": "..."},
            "done": true,
            "done_reason": "stop",
            "prompt_eval_count": 50,
            "eval_count": 150
        }
        """
        start_time = time.time()

        payload = {
            "model": request.model,
            "messages": [message.model_dump() for message in request.messages],
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }
        if request.stop_sequences:
            payload["options"]["stop"] = request.stop_sequences

        logger.info(
            "Sending chat request to Ollama",
            model=request.model,
            messages_count=len(request.messages),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            response = await client.post("/api/chat", json=payload)
            response.raise_for_status()
            response_data = response.json()

        except httpx.TimeoutException as e:
            logger.warning("Ollama request timeout", timeout=self.timeout, error=str(e))
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout, "model": request.model},
            ) from e

        except httpx.HTTPStatusError as e:
            raise self.http_error(e, request.model) from e

        except (httpx.NetworkError, httpx.ConnectError) as e:
            logger.warning("Ollama network error", error=str(e))
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"error_type": type(e).__name__, "model": request.model},
            ) from e

        except json.JSONDecodeError as e:
            logger.error("Failed to parse Ollama response JSON", error=str(e))
            raise LLMGenerationError(
                "Invalid JSON response from Ollama",
                details={"parse_error": str(e), "model": request.model},
            ) from e

        if "error" in response_data:
            raise LLMGenerationError(
                f"Ollama error: {response_data['error']}",
                details={"model": request.model},
            )

        content = (response_data.get("message") or {}).get("content", "")
        if not content:
            raise LLMGenerationError(
                "Empty response from Ollama",
                details={"response": response_data, "model": request.model},
            )

        latency_ms = int((time.time() - start_time) * 1000)
        usage = TokenUsage(
            input_tokens=response_data.get("prompt_eval_count") or 0,
            output_tokens=response_data.get("eval_count") or 0,
        )
        finish_reason = response_data.get("done_reason") or ("stop" if response_data.get("done") else "incomplete")

        logger.info(
            "Ollama generation successful",
            model=response_data.get("model", request.model),
            latency_ms=latency_ms,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            finish_reason=finish_reason,
        )

        return ProviderResponse(
            content=content,
            usage=usage,
            model_version=response_data.get("model", request.model),
            finish_reason=finish_reason,
            latency_ms=latency_ms,
            raw_metadata={
                "total_duration": response_data.get("total_duration"),
                "load_duration": response_data.get("load_duration"),
                "eval_duration": response_data.get("eval_duration"),
            },
        )

    async def health_check(self) -> bool:
        """
        Check Ollama server health via GET /api/tags.

        Returns True if server responds, False otherwise.
        """
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=5.0)
            response.raise_for_status()
            logger.debug("Ollama health check passed")
            return True
        except Exception as e:
            logger.warning("Ollama health check failed", error=str(e))
            return False

    async def list_models(self) -> list[str]:
        """
        List all available models via GET /api/tags.

        Returns:
            List of model names (e.g., ["qwen2.5:3b", "llama3.2:3b"])
        """
        try:
            client = await self._get_client()
            response = await client.get("/api/tags", timeout=10.0)
            response.raise_for_status()

            data = response.json()
            models = [m["name"] for m in data.get("models", [])]
            logger.debug("Listed available models", count=len(models), models=models)
            return models

        except Exception as e:
            logger.error("Failed to list models", error=str(e))
            raise LLMConnectionError(
                f"Failed to list models: {str(e)}",
                details={"error": str(e)},
            ) from e
