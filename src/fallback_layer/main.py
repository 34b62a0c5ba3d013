"""
FastAPI application entry point for the LLM Fallback Layer.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from fallback_layer.api.dependencies import get_fallback_config, get_provider_registry
from fallback_layer.api.error_handlers import EXCEPTION_HANDLERS
from fallback_layer.api.middleware import RequestTracingMiddleware
from fallback_layer.api.routes import router
from fallback_layer.config import settings
from fallback_layer.logging_config import configure_logging

# Configure structured logging before any other imports
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, app="llm-fallback-layer", version=settings.APP_VERSION)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Provider fallback and retry engine for LLM completions",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for trace_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["fallback"])


@app.on_event("startup")
async def startup():
    """Log the effective fallback configuration."""
    config = get_fallback_config()
    registry = get_provider_registry()
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        provider_priority=list(config.provider_priority),
        eligible_providers=config.eligible_providers(),
        registered_clients=registry.providers,
        max_attempts=config.max_attempts,
        auto_fallback=settings.AUTO_FALLBACK,
        cross_provider=settings.CROSS_PROVIDER_FALLBACK,
    )
    unserved = [name for name in config.provider_priority if name not in registry.providers]
    if unserved:
        logger.warning("Prioritized providers have no client and are disabled", providers=unserved)
    if not config.eligible_providers():
        logger.warning("No eligible provider configured; every request will fail")


@app.on_event("shutdown")
async def shutdown():
    """Close provider client connection pools."""
    logger.info("Application shutdown")
    await get_provider_registry().close()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "completions": "/v1/completions",
        "providers": "/v1/providers",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fallback_layer.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
