"""Structured logging configuration for the access service.

Standardizes logging with ``structlog``: JSON for machines or a pretty
console format for humans, with the service name bound to every line.

Typical usage
- Call ``configure_logging(service_name, log_level, log_format)`` at startup
- Hand loggers from ``get_logger(name)`` to the components that need them
- Wrap each request in ``request_context(...)`` so every line logged while
  serving it carries the same ``request_id``
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Configure structured logging for a service.

    Parameters
    - service_name: Logical service identifier bound to each log line
    - log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` (case-insensitive)
    - log_format: ``json`` for production; ``console`` for local dev
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str, **context: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, optionally pre-bound with context."""
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger


def resolve_request_id(candidate: Optional[str]) -> str:
    """Return ``candidate`` if it is usable as a request id, else a new one."""
    if candidate:
        candidate = candidate.strip()
        if 0 < len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable():
            return candidate
    return uuid.uuid4().hex


@contextmanager
def request_context(request_id: Optional[str] = None, **context: Any) -> Iterator[str]:
    """Bind a request id (and extra context) for the duration of a request.

    Yields the id actually bound, generating one when ``request_id`` is
    missing or unusable. The binding is undone on exit.
    """
    resolved = resolve_request_id(request_id)
    with structlog.contextvars.bound_contextvars(request_id=resolved, **context):
        yield resolved
