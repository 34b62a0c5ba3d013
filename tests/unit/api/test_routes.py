"""
Unit tests for the HTTP API.

Uses FastAPI's TestClient with dependency overrides, so no provider is
contacted and no startup hook runs.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fallback_layer.api.dependencies import (
    get_fallback_config,
    get_orchestrator,
    get_provider_registry,
    get_rate_limit_oracle,
    get_settings,
)
from fallback_layer.collaborators.rate_limit import CooldownRateLimitOracle
from fallback_layer.llm.base_client import BaseLLMClient
from fallback_layer.llm.registry import ProviderRegistry
from fallback_layer.main import app
from fallback_layer.models.enums import OutcomeStatus
from fallback_layer.models.fallback_models import RequestOutcome
from fallback_layer.models.llm_models import TokenUsage


class FakeOrchestrator:
    """Returns a canned outcome and remembers how it was called."""

    def __init__(self, outcome: RequestOutcome):
        self.outcome = outcome
        self.calls = []

    async def execute(self, messages, provider=None, model=None, **kwargs):
        self.calls.append({"messages": messages, "provider": provider, "model": model, **kwargs})
        return self.outcome


def health_client(healthy: bool) -> MagicMock:
    client = MagicMock(spec=BaseLLMClient)
    client.health_check = AsyncMock(return_value=healthy)
    return client


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# POST /v1/completions
# ============================================================================


def test_completion_success(client):
    orchestrator = FakeOrchestrator(
        RequestOutcome(
            success=True,
            status=OutcomeStatus.SUCCESS,
            content="hello",
            usage=TokenUsage(input_tokens=3, output_tokens=4),
            provider="openai",
            model="gpt-4o",
            attempts=2,
            fallback_path=["anthropic/claude-opus", "openai/gpt-4o"],
        )
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    response = client.post(
        "/v1/completions",
        json={
            "messages": [{"role": "user", "content": "hi"}],
            "provider": "anthropic",
            "max_attempts": 2,
            "cross_provider": True,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "success"
    assert body["fallback_path"] == ["anthropic/claude-opus", "openai/gpt-4o"]
    assert body["usage"] == {"input_tokens": 3, "output_tokens": 4}

    call = orchestrator.calls[0]
    assert call["provider"] == "anthropic"
    assert call["model"] is None
    assert call["max_attempts"] == 2
    assert call["cross_provider"] is True
    assert call["messages"][0].content == "hi"


def test_completion_failure_is_still_200(client):
    orchestrator = FakeOrchestrator(
        RequestOutcome(
            success=False,
            status=OutcomeStatus.EXHAUSTED,
            provider="anthropic",
            model="claude-haiku",
            attempts=1,
            fallback_path=["anthropic/claude-haiku"],
        )
    )
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    response = client.post("/v1/completions", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 200
    assert response.json()["status"] == "exhausted"
    assert response.json()["success"] is False


@pytest.mark.parametrize(
    "payload",
    [
        {"messages": []},
        {"messages": [{"role": "robot", "content": "hi"}]},
        {"messages": [{"role": "user", "content": "hi"}], "max_attempts": 0},
    ],
)
def test_completion_rejects_invalid_body(client, payload):
    app.dependency_overrides[get_orchestrator] = lambda: FakeOrchestrator(None)

    response = client.post("/v1/completions", json=payload)

    assert response.status_code == 422


# ============================================================================
# GET /v1/providers
# ============================================================================


def test_providers_snapshot(client, fallback_config, test_settings):
    app.dependency_overrides[get_fallback_config] = lambda: fallback_config
    app.dependency_overrides[get_rate_limit_oracle] = lambda: CooldownRateLimitOracle()
    app.dependency_overrides[get_settings] = lambda: test_settings

    response = client.get("/v1/providers")

    assert response.status_code == 200
    body = response.json()
    assert body["provider_priority"] == ["anthropic", "openai", "google", "ollama"]
    providers = {p["name"]: p for p in body["providers"]}
    assert providers["google"]["eligible"] is False
    assert providers["ollama"]["is_local"] is True
    assert providers["openai"]["models"] == ["gpt-4o", "gpt-4o-mini"]
    assert providers["openai"]["rate_limit_remaining_pct"] == 100.0
    assert "sk-test" not in response.text


# ============================================================================
# GET /health
# ============================================================================


@pytest.mark.parametrize(
    "states,expected_status,expected_code",
    [
        ((True, True), "healthy", 200),
        ((True, False), "degraded", 200),
        ((False, False), "unhealthy", 503),
    ],
)
def test_health(client, test_settings, states, expected_status, expected_code):
    registry = ProviderRegistry({"ollama": health_client(states[0]), "openai": health_client(states[1])})
    app.dependency_overrides[get_provider_registry] = lambda: registry
    app.dependency_overrides[get_settings] = lambda: test_settings

    response = client.get("/health")

    assert response.status_code == expected_code
    assert response.json()["status"] == expected_status
    assert set(response.json()["services"]) == {"ollama", "openai"}


# ============================================================================
# Root and Middleware
# ============================================================================


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["completions"] == "/v1/completions"


def test_request_id_header_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


def test_request_id_header_is_generated(client):
    response = client.get("/")

    assert len(response.headers["X-Request-ID"]) == 36
