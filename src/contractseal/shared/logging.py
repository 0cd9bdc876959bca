"""Structured logging configuration.

Contract plaintext and derived keys must never reach a log sink, so every
event passes through ``redact_confidential_fields`` before rendering.
"""

import logging
import sys
from typing import Any, cast

import structlog
from structlog.typing import EventDict, WrappedLogger

from contractseal.config import get_settings

CONFIDENTIAL_FIELDS = frozenset(
    {"content", "payload", "plaintext", "key", "passphrase", "sender", "receiver"}
)


def redact_confidential_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace confidential values with a length marker."""
    for name in CONFIDENTIAL_FIELDS.intersection(event_dict):
        value = event_dict[name]
        size = len(value) if isinstance(value, str | bytes | dict | list) else 0
        event_dict[name] = f"[REDACTED: {size}]"
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application."""
    settings = get_settings()

    log_level = logging.DEBUG if settings.app_debug else logging.INFO

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_confidential_fields,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        # JSON lines for log shipping
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
        level=log_level,
    )

    # SQL echo would print encrypted documents and emails
    for logger_name in ["uvicorn", "uvicorn.access", "sqlalchemy.engine", "aiosqlite"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
