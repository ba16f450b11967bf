"""
Structured Logging
==================

JSON-structured logging for the worker process.

Provides:
- JSON records (timestamp, environment, service, correlation id)
- Redaction of credential-like fields
- Correlation-aware logger adapters for event handling
- Latency timing helper

Usage:
    from helpdesk.shared.infrastructure.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Ticket assigned", extra={"ticket_id": ticket_id})
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, MutableMapping

from pythonjsonlogger import jsonlogger

_REDACTED = "***REDACTED***"
_SENSITIVE_MARKERS = ("password", "api_key", "secret", "authorization")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding service context to every record.

    ``environment`` and ``service`` are fixed at construction so records
    emitted before any request context exists are still attributable.
    """

    def __init__(self, *args: Any, environment: str = "development",
                 service: str = "helpdesk-assignment", **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._environment = environment
        self._service = service

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        log_record["environment"] = self._environment
        log_record["service"] = self._service

        if hasattr(record, "correlation_id"):
            log_record["correlation_id"] = record.correlation_id

        for key in list(log_record):
            lowered = key.lower()
            if any(marker in lowered for marker in _SENSITIVE_MARKERS):
                log_record[key] = _REDACTED
            elif "token" in lowered and "tokens" not in lowered:
                log_record[key] = _REDACTED


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    service: str = "helpdesk-assignment",
) -> None:
    """
    Configure structured JSON logging for the process.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: Environment name added to every record
        service: Service name added to every record
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(CustomJsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        environment=environment,
        service=service,
    ))
    root_logger.addHandler(handler)

    # Silence noisy loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges its context into each call's ``extra``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_context_logger(name: str, correlation_id: str | None = None) -> logging.LoggerAdapter:
    """
    Get a logger carrying a correlation ID for event tracing.

    Args:
        name: Logger name
        correlation_id: Identifier shared by every record of one event

    Returns:
        logging.LoggerAdapter: Adapter adding correlation_id to every record
    """
    context = {"correlation_id": correlation_id} if correlation_id else {}
    return ContextLoggerAdapter(get_logger(name), context)


@contextmanager
def log_latency(logger: logging.Logger | logging.LoggerAdapter, operation: str, **extra_context: Any):
    """
    Context manager for measuring and logging operation latency.

    Usage:
        with log_latency(logger, "ticket_processing", ticket_id=ticket_id):
            await workflow.process(...)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{operation} completed",
            extra={
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                **extra_context,
            },
        )
