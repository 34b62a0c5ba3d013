"""
Provider client abstraction and implementations.

Components:
- BaseLLMClient: Abstract base class for provider clients
- OllamaClient: Local Ollama inference server
- OpenAICompatibleClient: OpenAI-style /chat/completions APIs (OpenAI, Groq, Mistral, ...)
- ProviderRegistry: ProviderCaller dispatching on provider name
- exceptions: Client exceptions carrying HTTP status for classification
"""

from fallback_layer.llm.base_client import BaseLLMClient
from fallback_layer.llm.exceptions import (
    LLMAuthenticationError,
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from fallback_layer.llm.ollama_client import OllamaClient
from fallback_layer.llm.openai_client import OpenAICompatibleClient
from fallback_layer.llm.registry import ProviderRegistry

__all__ = [
    "BaseLLMClient",
    "OllamaClient",
    "OpenAICompatibleClient",
    "ProviderRegistry",
    "LLMClientError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMGenerationError",
    "LLMRateLimitError",
    "LLMAuthenticationError",
    "LLMModelNotAvailableError",
]
