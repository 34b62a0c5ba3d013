"""
Integration tests for the FastAPI application.

The full stack runs (routes, orchestrator, classifier, policy, provider
clients) with httpx.MockTransport standing in for the provider APIs, so
no running services are required.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from fallback_layer.api.dependencies import (
    get_fallback_config,
    get_provider_registry,
    get_rate_limit_oracle,
    get_settings,
)
from fallback_layer.collaborators.rate_limit import CooldownRateLimitOracle
from fallback_layer.llm.openai_client import OpenAICompatibleClient
from fallback_layer.llm.registry import ProviderRegistry
from fallback_layer.main import app


def provider_api(status_code: int, payload: dict, calls: list) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def chat_completion(content: str, model: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "model": model,
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 9, "completion_tokens": 2},
    }


@pytest.fixture
def wire_app(test_settings):
    """Point the app at mocked provider APIs; returns a factory taking the transports."""

    def wire(anthropic: httpx.MockTransport, openai: httpx.MockTransport) -> TestClient:
        registry = ProviderRegistry(
            {
                "anthropic": OpenAICompatibleClient(
                    base_url="https://anthropic.test/v1",
                    api_key="sk-ant-test",
                    provider_name="anthropic",
                    transport=anthropic,
                ),
                "openai": OpenAICompatibleClient(
                    base_url="https://openai.test/v1",
                    api_key="sk-test",
                    transport=openai,
                ),
            }
        )
        oracle = CooldownRateLimitOracle()
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_fallback_config] = lambda: test_settings.fallback_configuration()
        app.dependency_overrides[get_provider_registry] = lambda: registry
        app.dependency_overrides[get_rate_limit_oracle] = lambda: oracle
        return TestClient(app)

    yield wire
    app.dependency_overrides.clear()


def test_auth_failure_falls_back_to_next_provider(wire_app):
    anthropic_calls, openai_calls = [], []
    client = wire_app(
        provider_api(401, {"error": {"message": "invalid x-api-key"}}, anthropic_calls),
        provider_api(200, chat_completion("pong", "gpt-4o-2024-08-06"), openai_calls),
    )

    response = client.post(
        "/v1/completions",
        json={"messages": [{"role": "user", "content": "ping"}], "cross_provider": True},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "success"
    assert body["content"] == "pong"
    assert body["provider"] == "openai"
    assert body["model"] == "gpt-4o"
    assert body["attempts"] == 2
    assert body["fallback_path"] == ["anthropic/claude-opus", "openai/gpt-4o"]
    assert body["usage"] == {"input_tokens": 9, "output_tokens": 2}

    assert len(anthropic_calls) == 1
    assert len(openai_calls) == 1
    assert openai_calls[0].headers["Authorization"] == "Bearer sk-test"


def test_bad_request_is_not_retried(wire_app):
    anthropic_calls, openai_calls = [], []
    client = wire_app(
        provider_api(400, {"error": {"message": "messages: field required"}}, anthropic_calls),
        provider_api(200, chat_completion("unused", "gpt-4o"), openai_calls),
    )

    response = client.post("/v1/completions", json={"messages": [{"role": "user", "content": "ping"}]})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["status"] == "not_recoverable"
    assert body["attempts"] == 1
    assert body["fallback_path"] == ["anthropic/claude-opus"]
    assert body["error"]["category"] == "validation_error"
    assert openai_calls == []


def test_providers_endpoint_reflects_settings(wire_app):
    calls = []
    client = wire_app(provider_api(200, {}, calls), provider_api(200, {}, calls))

    response = client.get("/v1/providers")

    assert response.status_code == 200
    body = response.json()
    assert body["provider_priority"] == ["anthropic", "openai", "ollama"]
    assert body["max_attempts"] == 3
    assert calls == []
