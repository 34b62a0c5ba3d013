"""
Provider registry: the ProviderCaller the orchestrator talks to.

Maps provider names onto client instances and turns the orchestrator's
(provider, model, messages, max_tokens, temperature) call into a
CompletionRequest for the right client.
"""

from typing import Optional, Sequence

import structlog

from fallback_layer.config import Settings
from fallback_layer.llm.base_client import BaseLLMClient
from fallback_layer.llm.exceptions import LLMModelNotAvailableError
from fallback_layer.llm.ollama_client import OllamaClient
from fallback_layer.llm.openai_client import OpenAICompatibleClient
from fallback_layer.models.llm_models import ChatMessage, CompletionRequest, ProviderResponse


logger = structlog.get_logger(__name__)


class ProviderRegistry:
    """Dispatch provider calls to registered clients."""

    def __init__(self, clients: Optional[dict[str, BaseLLMClient]] = None):
        self._clients: dict[str, BaseLLMClient] = dict(clients or {})

    def register(self, provider: str, client: BaseLLMClient) -> None:
        self._clients[provider] = client
        logger.info("Provider client registered", provider=provider, client=repr(client))

    def get(self, provider: str) -> BaseLLMClient:
        try:
            return self._clients[provider]
        except KeyError:
            raise LLMModelNotAvailableError(
                f"No client registered for provider '{provider}'",
                details={"provider": provider},
            ) from None

    @property
    def providers(self) -> list[str]:
        return list(self._clients)

    async def call(
        self,
        provider: str,
        model: str,
        messages: Sequence[ChatMessage],
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        client = self.get(provider)
        request = CompletionRequest(
            model=model,
            messages=tuple(messages),
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return await client.generate(request)

    async def health(self) -> dict[str, bool]:
        """Health check every registered client."""
        return {name: await client.health_check() for name, client in self._clients.items()}

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        """
        Wire clients for the providers the settings can reach.

        Ollama is always registered (local). OpenAI-compatible providers
        with a known base URL are registered whether or not a key is set;
        without a key their calls fail as auth errors, which the
        fallback engine already routes around.
        """
        registry = cls()
        registry.register("ollama", OllamaClient(settings.OLLAMA_BASE_URL, timeout=settings.PROVIDER_TIMEOUT))

        openai_compatible = {
            "openai": settings.OPENAI_BASE_URL,
            "groq": settings.GROQ_BASE_URL,
            "mistral": settings.MISTRAL_BASE_URL,
        }
        for name, base_url in openai_compatible.items():
            registry.register(
                name,
                OpenAICompatibleClient(
                    base_url=base_url,
                    api_key=settings.api_key_for(name),
                    timeout=settings.PROVIDER_TIMEOUT,
                    provider_name=name,
                ),
            )
        return registry
