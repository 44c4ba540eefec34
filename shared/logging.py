"""
Structured logging for the account service.

Sets up structlog on top of the standard library logger with:
- JSON formatting for production, pretty console output for development
- Redaction of credentials and verification codes
- IP hashing in production

setup_logging() is called once from create_app(); scripts call it themselves.
Modules obtain loggers with get_logger(__name__) and log snake_case events:

    log = get_logger(__name__)
    log.info("otp_issued", email=email, purpose="register")
"""

from __future__ import annotations

import hashlib
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

from config import LoggingSettings

_IS_PRODUCTION = False

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "otp_code",
    "verification_code",
    "api_key",
    "Authorization",
    "secret",
    "key",
}

_KEEP_FIELDS = {"level", "event", "timestamp", "logger"}


def get_logger(name: str) -> BoundLogger:
    """Return a structlog logger bound to *name* (usually ``__name__``)."""
    return structlog.get_logger(name)


def hash_ip(ip_address: Optional[str]) -> Optional[str]:
    """Hash IP addresses in production; pass them through in development.

    Production values are the first 16 hex chars of the SHA-256 digest.
    """
    if ip_address is None:
        return None
    if _IS_PRODUCTION and ip_address:
        return hashlib.sha256(ip_address.encode()).hexdigest()[:16]
    return ip_address


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _KEEP_FIELDS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered
            for sensitive in ["password", "token", "secret", "otp"]
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str) -> None:
    """Configure structlog processors for the chosen output format."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)


def setup_logging(settings: LoggingSettings, *, is_production: bool = False) -> None:
    """Initialize logging for the application.

    Should be called early in application startup (in create_app()).
    """
    global _IS_PRODUCTION
    _IS_PRODUCTION = is_production

    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)

    get_logger(__name__).info(
        "logging_initialized",
        log_level=settings.log_level,
        log_format=settings.log_format,
        production=is_production,
    )
