"""Structured logging configuration using structlog.

Every provider error message and request context flows through the
log pipeline, so secrets are masked before rendering: values under
credential-like keys are replaced and bearer tokens or `sk-...` keys
embedded in free text (provider error bodies echo them) are cut down
to a short prefix.

Production renders JSON lines; development renders colored console output.
"""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


SECRET_KEYS = frozenset({"api_key", "authorization", "x-api-key", "token", "password"})

_SECRET_PATTERN = re.compile(r"(Bearer\s+|\bsk-)([A-Za-z0-9_\-]{4})[A-Za-z0-9_\-]+")

# Chatty libraries: httpx logs every provider request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def mask_secret(value: Any) -> Any:
    """Mask bearer tokens and `sk-` keys inside a string; other values pass through."""
    if not isinstance(value, str):
        return value
    return _SECRET_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}***", value)


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor: drop credential values and mask keys embedded in strings."""
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS and value:
            event_dict[key] = "***"
        else:
            event_dict[key] = mask_secret(value)
    return event_dict


def app_context(app: str, version: str) -> Processor:
    """Build a processor stamping service name and version on every event."""

    def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app)
        event_dict.setdefault("version", version)
        return event_dict

    return add_app_context


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    app: str = "llm-fallback-layer",
    version: str = "0.1.0",
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: "production" selects JSON output, anything else console
        app: Service name added to every event
        version: Service version added to every event
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    is_production = environment.lower() == "production"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        app_context(app, version),
        redact_secrets,
    ]

    if is_production:
        processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors))
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=log_level,
        environment=environment,
        renderer="json" if is_production else "console",
    )
