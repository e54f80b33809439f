"""Logging configuration for the Mini App backend."""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from miniapp.config import settings


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    Sets up the Python standard library logger to forward logs to `structlog`.
    Uses `ConsoleRenderer` for development and `JSONRenderer` everywhere else.
    """
    # Set the log level
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        stream=sys.stdout,
    )

    # Configure structlog processors
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    # Add environment-specific processors
    if settings.ENVIRONMENT.lower() == "development":
        # Pretty printing for development
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # JSON formatting for production
        processors.append(structlog.processors.JSONRenderer())

    # Configure structlog
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger with the given name and initial values.

    Args:
        name (str): Logger name (usually `__name__`).
        **initial_values: Key-value pairs to initially bind to the logger context.

    Returns:
        structlog.stdlib.BoundLogger: A configured structured logger instance.
    """
    return structlog.get_logger(name).bind(**initial_values)  # type: ignore


def log_error(
    logger: structlog.stdlib.BoundLogger,
    error: Exception,
    message: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an error with structured context.

    Extracts error type and message; includes `details` and `code` when the
    error is one of our own exceptions.

    Args:
        logger (structlog.stdlib.BoundLogger): The logger instance to use.
        error (Exception): The exception to log.
        message (Optional[str], optional): Custom message. Defaults to "An error occurred".
        extra (Optional[Dict[str, Any]], optional): Additional context to log.
    """
    context = dict(extra or {})
    context["error_type"] = error.__class__.__name__
    context["error_message"] = str(error)

    # Include error details and our failure code if available
    if hasattr(error, "details"):
        context["error_details"] = error.details
    if hasattr(error, "code"):
        context["error_code"] = str(getattr(error.code, "value", error.code))

    logger.error(message or "An error occurred", **context, exc_info=error)
