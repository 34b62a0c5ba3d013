"""
FastAPI API routes and endpoints.

- routes.py: POST /v1/completions, GET /v1/providers, GET /health
- dependencies.py: Dependency injection for registry, oracle, orchestrator
- models.py: API-specific request/response models
- middleware.py: Request tracing middleware
- error_handlers.py: Exception handlers for structured error responses
"""

from fallback_layer.api import dependencies, error_handlers, models
from fallback_layer.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
