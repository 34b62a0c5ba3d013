"""
API routes for the fallback layer.

POST /v1/completions runs one request through the fallback engine and
always answers 200 with the RequestOutcome; clients branch on
`success`/`status` rather than on the HTTP status code.
"""

import asyncio
import time

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from fallback_layer.api.dependencies import (
    get_fallback_config,
    get_orchestrator,
    get_provider_registry,
    get_rate_limit_oracle,
    get_settings,
)
from fallback_layer.api.models import (
    CompletionApiRequest,
    HealthResponse,
    ProviderInfo,
    ProvidersResponse,
)
from fallback_layer.collaborators.rate_limit import CooldownRateLimitOracle
from fallback_layer.config import Settings
from fallback_layer.llm.registry import ProviderRegistry
from fallback_layer.models.fallback_models import FallbackConfiguration, RequestOutcome
from fallback_layer.retry.orchestrator import RequestOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter()


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event, poll_interval: float = 0.5) -> None:
    """Set cancel_event once the HTTP client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling request")
            cancel_event.set()
            return
        await asyncio.sleep(poll_interval)


@router.post(
    "/v1/completions",
    response_model=RequestOutcome,
    status_code=status.HTTP_200_OK,
    summary="Run a completion with provider fallback",
    description="""
    Send a conversation to the configured LLM providers with automatic
    retry, model fallback and provider fallback.

    The response is always a RequestOutcome: inspect `success` and
    `status` (success, exhausted, no_fallback_available, not_recoverable,
    cancelled). `fallback_path` lists every provider/model attempted.
    """,
)
async def create_completion(
    body: CompletionApiRequest,
    request: Request,
    orchestrator: RequestOrchestrator = Depends(get_orchestrator),
) -> RequestOutcome:
    logger.info(
        "Completion request received",
        provider=body.provider,
        model=body.model,
        messages_count=len(body.messages),
        max_attempts=body.max_attempts,
    )

    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        outcome = await orchestrator.execute(
            body.messages,
            body.provider,
            body.model,
            max_attempts=body.max_attempts,
            auto_fallback=body.auto_fallback,
            cross_provider=body.cross_provider,
            max_tokens=body.max_tokens,
            temperature=body.temperature,
            task_hint=body.task_hint,
            cancel_event=cancel_event,
        )
    finally:
        watcher.cancel()

    logger.info(
        "Completion request finished",
        success=outcome.success,
        status=outcome.status.value,
        attempts=outcome.attempts,
    )
    return outcome


@router.get(
    "/v1/providers",
    response_model=ProvidersResponse,
    summary="Provider configuration snapshot",
    description="Priority order, model chains and eligibility. API key values are never returned.",
)
async def list_providers(
    config: FallbackConfiguration = Depends(get_fallback_config),
    oracle: CooldownRateLimitOracle = Depends(get_rate_limit_oracle),
    settings: Settings = Depends(get_settings),
) -> ProvidersResponse:
    providers = [
        ProviderInfo(
            name=provider.name,
            models=list(provider.models),
            enabled=provider.enabled,
            has_credentials=provider.has_credentials,
            is_local=provider.is_local,
            eligible=provider.is_eligible,
            rate_limit_remaining_pct=oracle.percent_remaining(provider.name, provider.models[0])
            if provider.models
            else None,
        )
        for provider in config.providers.values()
    ]
    return ProvidersResponse(
        provider_priority=list(config.provider_priority),
        max_attempts=config.max_attempts,
        auto_fallback=settings.AUTO_FALLBACK,
        cross_provider=settings.CROSS_PROVIDER_FALLBACK,
        providers=providers,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="""
    Check the reachability of every registered provider client.

    healthy: all providers reachable; degraded: at least one reachable;
    unhealthy (503): none reachable.
    """,
    responses={
        200: {"description": "At least one provider reachable"},
        503: {"description": "No provider reachable"},
    },
)
async def health_check(
    registry: ProviderRegistry = Depends(get_provider_registry),
    settings: Settings = Depends(get_settings),
):
    start_time = time.perf_counter()
    results = await registry.health()
    services = {name: "ok" if healthy else "unreachable" for name, healthy in results.items()}

    if results and all(results.values()):
        health_status = "healthy"
        status_code = status.HTTP_200_OK
    elif any(results.values()):
        health_status = "degraded"
        status_code = status.HTTP_200_OK
    else:
        health_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    logger.info(
        "Health check",
        status=health_status,
        services=services,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
    )

    response = HealthResponse(
        status=health_status,
        version=settings.APP_VERSION,
        services=services,
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))
