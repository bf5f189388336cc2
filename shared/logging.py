"""
Structured logging for the 4Wheeler API.

Provides:
- setup_logging(): configure stdlib logging + structlog once at startup
- get_logger(): module-level logger factory
- redaction of credentials (passwords, tokens, OTPs, secrets) from events

JSON output in production, pretty console output in development.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

# Key fragments whose values never reach the log output
_SENSITIVE_FRAGMENTS = ("password", "token", "secret", "otp", "cookie", "authorization")
_UNREDACTED_KEYS = frozenset({"level", "event", "timestamp", "logger", "token_type"})

_NOISY_LOGGERS = (
    "pymongo",
    "pymongo.connection",
    "pymongo.serverSelection",
    "pymongo.command",
    "pymongo.topology",
    "httpx",
    "httpcore",
    "uvicorn.access",
)


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("user_login", user_id="123", method="password")
    """
    return structlog.get_logger(name)


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace the value of any credential-looking key with a marker."""
    for key in list(event_dict.keys()):
        if key in _UNREDACTED_KEYS:
            continue
        lowered = key.lower()
        if any(fragment in lowered for fragment in _SENSITIVE_FRAGMENTS):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog processors.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True, pad_event=15, sort_keys=False)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout and quiet third-party chatter."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    env: Optional[str] = None,
) -> None:
    """
    Initialize logging for the application.

    Should be called once, early in create_app().
    """
    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized",
        env=env,
        log_level=log_level,
        log_format=log_format,
    )
