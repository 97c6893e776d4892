"""
Structured Logging

DESIGN DECISION: Every ledger mutation, storage write and transfer
step emits a structured event. This is diagnostic logging only; the
ledger itself is the record of what happened to the money.

Events are key/value pairs so that a partially persisted transfer can
be found and reconciled from the logs alone.
"""

import logging
import sys

import structlog


def _configure_structlog(renderer) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
_configure_structlog(structlog.processors.JSONRenderer())


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """
    Route structured logs to stderr at the given level.

    Call once at application startup. Console rendering is meant
    for local development only.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    _configure_structlog(
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name)
