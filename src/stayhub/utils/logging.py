"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper for logging booking state changes

Usage:
    from stayhub.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Booking reserved", extra={"booking_id": "..."})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def generate_correlation_id() -> str:
    """Generate a new correlation ID.

    Returns:
        UUID-based correlation ID string
    """
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    booking_id: str | None = None,
    property_id: str | None = None,
    actor_id: str | None = None,
    status: str | None = None,
    rejected: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a booking engine operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "reserve", "cancel")
        booking_id: Booking ID if available
        property_id: Property ID if available
        actor_id: Caller identity if available
        status: Resulting booking status
        rejected: Error code when a business rule rejected the request
        error: Error message if the operation failed unexpectedly
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if booking_id:
        context["booking_id"] = booking_id
    if property_id:
        context["property_id"] = property_id
    if actor_id:
        context["actor_id"] = actor_id
    if status:
        context["status"] = status
    if rejected:
        context["rejected"] = rejected
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Booking operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    elif rejected:
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)
