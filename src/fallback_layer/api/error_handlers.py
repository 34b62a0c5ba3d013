"""
FastAPI exception handlers for structured error responses.

Provider failures never reach these handlers: the orchestrator turns them
into a RequestOutcome. What remains are engine misuse and bugs.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from fallback_layer.retry.exceptions import FallbackError

logger = structlog.get_logger(__name__)


async def fallback_error_handler(request: Request, exc: FallbackError) -> JSONResponse:
    """
    Handle fallback engine errors that escaped an outcome.

    Maps to 503 Service Unavailable.
    """
    logger.error("Fallback engine error", error=exc.message, error_type=type(exc).__name__, **exc.details)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "fallback_error",
            "message": exc.message,
            "details": exc.details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    FallbackError: fallback_error_handler,
    Exception: generic_error_handler,
}
