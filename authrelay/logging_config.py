"""
Structured logging configuration using structlog.

All logs are output as JSON with consistent context fields. Values bound
under credential-like keys are masked before rendering.
"""
import logging
import sys

import structlog

SENSITIVE_KEYS = frozenset({
    "access_token",
    "refresh_token",
    "id_token",
    "code",
    "client_secret",
    "cookie",
    "authorization",
    "session_token",
})


def redact_sensitive(logger, method_name, event_dict):
    """Mask credential values that slipped into a log call."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def configure_logging(debug: bool = False):
    """Configure structlog for JSON output with context."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


logger = configure_logging()


def get_logger(**context):
    """
    Get a logger with additional context bound.

    Usage:
        log = get_logger(component="state_store")
        log.info("state_issued", pending=3)
    """
    return logger.bind(**context)
