"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Keys whose values must never reach a log sink
_REDACTED_KEYS = frozenset({"code", "verification_id", "client_secret", "payment_intent_secret"})


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace verification tokens and codes with a placeholder."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    return event_dict


def mask_email(email: str | None) -> str | None:
    """
    Mask an email address for logging.

    Keeps the first character of the local part and the full domain,
    e.g. ``alice@example.com`` becomes ``a***@example.com``.
    """
    if not email or "@" not in email:
        return email
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def configure_logging(
    log_level: str = "INFO",
    format_as_json: bool = True,
    include_correlation_id: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_as_json: If True, output logs as JSON; otherwise use console format
        include_correlation_id: If True, bind correlation IDs from context vars
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]

    # Correlation IDs are bound per request with structlog.contextvars
    if include_correlation_id:
        processors.insert(0, structlog.contextvars.merge_contextvars)

    if format_as_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
