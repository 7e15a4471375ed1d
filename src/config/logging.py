"""
Structured logging configuration using structlog.

Console output with colours while developing on a workstation, JSON lines
everywhere else so tablet logs can be shipped and grepped.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from src.config.settings import get_settings


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Stamp every event with the app, version and device it came from."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    if settings.device_name:
        event_dict["device"] = settings.device_name
    return event_dict


# Event keys whose values must never reach a log sink
SECRET_KEYS = frozenset(
    {"pin", "token", "secret", "signature", "api_key", "apikey", "authorization", "password"}
)
REDACTED = "***"


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask admin PINs, tokens, webhook signatures and API keys, one level deep."""
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if str(k).lower() in SECRET_KEYS and v is not None else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging() -> None:
    """Configure structlog and the stdlib root logger."""
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_app_context,
        redact_secrets,
    ]

    if settings.environment == "development":
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    # Request-level chatter from the HTTP stack drowns out sync events
    for noisy in ("httpx", "httpcore", "aiosqlite", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
