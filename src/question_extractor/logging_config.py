"""Structured logging configuration using structlog.

Production renders JSON lines, every other environment the colored console
renderer. Both share one processor chain, which ends by dropping any field
that could carry the caller's Gemini API key: the key is an opaque
credential and never reaches a log sink, whatever a call site binds.
"""

import logging
import sys
from typing import Any, Callable

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "question-extractor"

# Compared after lowercasing and mapping "-" to "_"
CREDENTIAL_FIELDS = frozenset({
    "credential",
    "api_key",
    "x_api_key",
    "x_goog_api_key",
    "authorization",
})

# Third-party loggers that echo request URLs or bodies (whole documents)
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "uvicorn.access")


def _is_credential_field(key: Any) -> bool:
    return isinstance(key, str) and key.lower().replace("-", "_") in CREDENTIAL_FIELDS


def drop_credentials(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Remove credential fields, including inside a nested `headers` mapping."""
    for key in [k for k in event_dict if _is_credential_field(k)]:
        del event_dict[key]

    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {k: v for k, v in headers.items() if not _is_credential_field(k)}

    return event_dict


def service_context(app_version: str) -> Callable[[WrappedLogger, str, EventDict], EventDict]:
    """Processor stamping the service name and version on every event."""

    def add_service_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("version", app_version)
        return event_dict

    return add_service_context


def build_processors(environment: str, app_version: str = "0.1.0") -> list[Processor]:
    """Processor chain shared by structlog and stdlib records (renderer excluded)."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        service_context(app_version),
    ]
    if environment.lower() == "production":
        processors.append(structlog.processors.format_exc_info)
    processors.append(drop_credentials)
    return processors


def configure_logging(
    log_level: str = "INFO",
    environment: str = "development",
    app_version: str = "0.1.0",
) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        environment: "production" selects the JSON renderer
        app_version: Stamped on every event
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    is_production = environment.lower() == "production"
    processors = build_processors(environment, app_version)

    renderer: Processor = (
        structlog.processors.JSONRenderer() if is_production else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors)
    )
    handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=logging.getLevelName(level),
        environment=environment,
        renderer="json" if is_production else "console",
    )
