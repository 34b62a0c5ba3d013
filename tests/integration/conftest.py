"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Integration tests are skipped if required services are not running.
"""

import httpx
import pytest


OLLAMA_URL = "http://localhost:11434"


@pytest.fixture(scope="session")
def check_ollama():
    """Check if Ollama is available at localhost:11434.

    Skips tests if Ollama is not reachable.
    """
    try:
        response = httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5)
        if response.status_code != 200:
            pytest.skip("Ollama not available (non-200 status)")
    except Exception as e:
        pytest.skip(f"Ollama not available: {e}")


@pytest.fixture(scope="session")
def ollama_models(check_ollama) -> list[str]:
    """Models pulled into the local Ollama server (skips when none)."""
    models = [m["name"] for m in httpx.get(f"{OLLAMA_URL}/api/tags", timeout=5).json().get("models", [])]
    if not models:
        pytest.skip("No models available in Ollama (run: ollama pull qwen2.5:3b)")
    return models
