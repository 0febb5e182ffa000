"""
Structured logging setup using structlog.
Outputs JSON-formatted logs for easy parsing.
"""

import logging
import os
import sys
from typing import Optional

import structlog


def setup_logging(level: Optional[str] = None, debug: bool = False):
    """
    Configure structlog for JSON-formatted logging.

    Level resolution: debug flag > explicit level > LOG_LEVEL env > INFO.

    Usage:
        from sensibo_bridge.utils.logging import get_logger
        log = get_logger(__name__)
        log.info("cycle_finished", devices=3, duration_s=6.2)
        log.warning("reconcile_failed", device="Living Room", error="HTTP 500")
        log.error("sensibo_auth_failed", status=401)
    """
    if debug:
        log_level = "DEBUG"
    else:
        log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    # Configure standard library logging (httpx logs through it)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Get a structlog logger instance.

    Args:
        name: Optional logger name (e.g., module name)

    Returns:
        Configured structlog logger
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
